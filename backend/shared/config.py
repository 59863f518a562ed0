"""
Centralized configuration for the IdSync backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, LOG_*).
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "IdSync API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_db_url: str = ""  # Direct Postgres URL, used only by run_migrations.py

    # Storage backend for profiles, logs and identities.
    # "memory" keeps everything in-process (development and tests).
    storage_backend: Literal["supabase", "memory"] = "supabase"

    # Table names
    profiles_table: str = "profiles"
    inconsistency_logs_table: str = "inconsistency_logs"
    deleted_accounts_table: str = "deleted_accounts"
    job_runs_table: str = "reconciliation_runs"

    # Roles
    admin_role: str = "admin"
    default_role: str = "viewer"

    # Consistency rules
    required_profile_fields: list[str] = ["email", "name", "role"]
    suspension_window_days: int = 30
    log_retention_days: int = 90

    # Routes a suspended principal may still reach ("METHOD /path")
    suspended_allowed_routes: list[str] = [
        "GET /api/users/me",
        "GET /api/users/me/suspension",
        "POST /api/users/me/complete-profile",
        "POST /api/auth/logout",
    ]

    # Reconciliation scheduler (all times UTC)
    enable_scheduler: bool = True
    full_scan_hour: int = 2
    full_scan_minute: int = 0
    expiry_sweep_minute: int = 0
    log_purge_day: int = 1
    log_purge_hour: int = 3
    log_purge_minute: int = 0
    scan_page_size: int = 500


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
