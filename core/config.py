# WORKFLOW: Core configuration management for the Fund Barometer service.
# Used by: All modules throughout the application
# Configuration includes:
# - Database connection settings
# - Ingestion behaviour (skip sheets, layout strategy, dedup policy, reconcile mode)
# - Cell coercion leniency
# - Search index parameters
# - API settings (CORS, upload limits)
# - Logging configuration
#
# Loaded at startup and used by all services for consistent configuration.

from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./funds.sqlite"
    database_echo: bool = False

    # Ingestion
    skip_sheets: List[str] = ["Main Page", "Summary", "Glossary", "Load", "Disclaimer"]
    header_scan_rows: int = 15
    header_scan_columns: int = 5
    layout_strategy: Literal["header", "fixed"] = "header"
    dedup_policy: Literal["canonical", "exact"] = "canonical"
    reconcile_mode: Literal["reconcile", "recreate"] = "reconcile"

    # Unparseable text becomes 0.0 instead of absent when enabled
    lenient_coercion: bool = False

    # Search
    search_default_limit: int = 20
    search_max_limit: int = 200
    search_sort_substring_matches: bool = False
    rate_expiry_grace_days: int = 0

    # API
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Fund Barometer API"
    version: str = "1.0.0"
    api_host: str = "0.0.0.0"
    api_port: int = 8081
    max_upload_bytes: int = 25 * 1024 * 1024

    # Environment
    environment: str = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # CORS
    allowed_origins: List[str] = ["*"]
    allowed_methods: List[str] = ["*"]
    allowed_headers: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
