# WORKFLOW: Database models for the fund performance store.
# Used by: Persistence reconciler, search index builder, bootstrap script, API readiness checks
# Models represent:
# 1. funds - one row per cleaned scheme name, updated in place by each ingestion
# 2. brokerage_rates - externally maintained commission terms, read-only for ingestion
#
# Data flow: XLSX -> ETL -> funds (reconciled) -> search index (joined with brokerage_rates)

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, Index, Integer, String, Text, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Fund(Base):
    __tablename__ = "funds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(200), nullable=False)
    scheme_name = Column(String(500), nullable=False, unique=True)
    canonical_name = Column(String(500), nullable=False)
    launch_date = Column(Text, nullable=True)
    fund_size_apr25 = Column(Float, nullable=True)
    fund_size_may25 = Column(Float, nullable=True)
    latest_nav = Column(Float, nullable=True)
    days_7 = Column(Float, nullable=True)
    days_14 = Column(Float, nullable=True)
    days_21 = Column(Float, nullable=True)
    month_1 = Column(Float, nullable=True)
    months_3 = Column(Float, nullable=True)
    months_6 = Column(Float, nullable=True)
    ytd = Column(Float, nullable=True)
    year_1 = Column(Float, nullable=True)
    years_2 = Column(Float, nullable=True)
    years_3 = Column(Float, nullable=True)
    years_4 = Column(Float, nullable=True)
    years_5 = Column(Float, nullable=True)
    years_7 = Column(Float, nullable=True)
    years_10 = Column(Float, nullable=True)
    since_inception = Column(Float, nullable=True)
    extra_values = Column(JSON, nullable=True)  # Overflow numeric columns, in sheet order
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_funds_canonical_name", "canonical_name"),
        Index("idx_funds_category", "category"),
    )


class BrokerageRate(Base):
    __tablename__ = "brokerage_rates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    arn = Column(String(50), nullable=True)
    company = Column(String(200), nullable=True)
    scheme_name = Column(String(500), nullable=False)
    brokerage_type = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    approved = Column(Boolean, nullable=False, default=False)
    year_1_base = Column(Float, nullable=True)
    year_2_base = Column(Float, nullable=True)
    year_3_base = Column(Float, nullable=True)
    year_4_onwards_base = Column(Float, nullable=True)

    __table_args__ = (
        Index("idx_rates_scheme_name", "scheme_name"),
        Index("idx_rates_validity", "start_date", "end_date"),
    )
