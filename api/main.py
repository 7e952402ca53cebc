#!/usr/bin/env python3
"""
Fund Barometer API - workbook upload, fund search and index refresh.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
import logging

from core.config import settings
from core.logging import configure_logging
from api.middleware.logging import LoggingMiddleware
from api.routers import funds, health
from db.session import get_session_factory, init_db
from services.search_index import IndexHolder, session_index_builder

configure_logging()
logger = logging.getLogger(__name__)

UPLOAD_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>Fund Barometer</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        .container { max-width: 600px; margin: 0 auto; }
        .panel { border: 2px dashed #ccc; padding: 30px; text-align: center; margin: 20px 0; }
        button { background: #007bff; color: white; padding: 10px 20px; border: none; cursor: pointer; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Fund Barometer</h1>
        <form action="{prefix}/funds/upload" method="post" enctype="multipart/form-data">
            <div class="panel">
                <p>Select your Excel file containing mutual fund data</p>
                <input type="file" name="excel_file" accept=".xlsx" required>
                <br><br>
                <button type="submit">Upload and Convert</button>
            </div>
        </form>
        <form action="{prefix}/funds/search" method="get">
            <div class="panel">
                <input type="text" name="q" placeholder="Scheme name" required>
                <button type="submit">Search</button>
            </div>
        </form>
    </div>
</body>
</html>
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and load the first search index before serving."""
    init_db()
    holder = app.state.index_holder
    try:
        count = holder.refresh(app.state.index_builder)
        logger.info(f"Initial search index loaded with {count} records")
    except Exception as e:
        logger.error(f"Initial index build failed, serving empty index: {e}")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        description="Mutual fund workbook ingestion and name search",
        lifespan=lifespan,
    )
    app.state.index_holder = IndexHolder()
    app.state.index_builder = session_index_builder(
        get_session_factory(), grace_days=settings.rate_expiry_grace_days
    )

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, prefix=settings.api_v1_prefix)
    app.include_router(funds.router, prefix=settings.api_v1_prefix)

    @app.get("/healthz")
    async def root_health_check():
        """Root-level health endpoint for external monitors."""
        return await health.health_check()

    @app.get("/", response_class=HTMLResponse)
    async def upload_page():
        return UPLOAD_PAGE.replace("{prefix}", settings.api_v1_prefix)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
