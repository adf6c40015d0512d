"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Requirement Audit Planner"
    debug: bool = True
    mock_mode: bool = True  # When True, issue tracker calls are simulated

    # ── Storage ──────────────────────────────────────────
    storage_backend: str = "memory"  # "memory" | "mongo"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "requirement_audit"
    mongodb_collection: str = "kv_store"

    # ── Audit selection ──────────────────────────────────
    audit_proposal_size: int = 10

    # ── Issue tracker ────────────────────────────────────
    issue_tracker_url: str = ""
    issue_tracker_user: str = ""
    issue_tracker_token: str = ""
    issue_tracker_project: str = "AUD"
    issue_tracker_issue_type: str = "Story"

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
