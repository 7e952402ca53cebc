# WORKFLOW: Database session management and connection handling.
# Used by: All database operations throughout the application
# Functions:
# 1. get_db() - Dependency injection for FastAPI endpoints
# 2. init_db() - Initialize database tables
# 3. check_db_connection() - Health check for database connectivity
#
# Database lifecycle:
# Startup: init_db() -> Create tables -> Check connection
# Runtime: get_db() -> Session -> Query -> Close session
# Health checks: check_db_connection() -> Monitor connectivity

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from core.config import settings
import logging

logger = logging.getLogger(__name__)

# Lazy-loaded database engine and session factory
_engine = None
_SessionLocal = None


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine.

    SQLite connections may be shared across request threads, in-memory
    databases use a single static connection, and pysqlite's implicit
    transaction handling is replaced with explicit BEGIN so per-record
    SAVEPOINTs behave.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True, echo=echo)

    kwargs = {}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False},
        **kwargs,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine() -> Engine:
    """Get database engine (lazy-loaded)."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url, echo=settings.database_echo)
    return _engine


def get_session_factory():
    """Get session factory (lazy-loaded)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def get_db():
    """
    Dependency to get database session.
    Yields a database session and ensures it's closed after use.
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def init_db(engine: Engine = None):
    """
    Initialize database tables.
    """
    from db.models import Base

    try:
        Base.metadata.create_all(bind=engine or get_engine())
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


def check_db_connection(engine: Engine = None) -> bool:
    """
    Check if database connection is working.
    """
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
