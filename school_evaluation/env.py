"""Environment-driven configuration for the Django settings module."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvSettings(BaseSettings):
    """Values read from the environment / .env (prefix ``SCHOOL_EVAL_``)."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SCHOOL_EVAL_", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    secret_key: str = "django-insecure-change-me"
    debug: bool = False
    allowed_hosts: list[str] = ["*"]
    log_level: str = "INFO"

    # ── Database (SQLite unless an engine is given) ─────────
    db_engine: str = "django.db.backends.sqlite3"
    db_name: str = "db.sqlite3"
    db_user: str = ""
    db_password: str = ""
    db_host: str = ""
    db_port: str = ""

    # ── JWT ──────────────────────────────────────────────────
    access_token_minutes: int = 60
    refresh_token_days: int = 7

    # ── Evaluation workflow ──────────────────────────────────
    autosave_debounce_seconds: float = 1.5
    trial_subscription_days: int = 30
    imported_teacher_password: str = "defaultpassword123"


@lru_cache
def get_env_settings() -> EnvSettings:
    return EnvSettings()
