"""Environment-backed configuration consumed by the Django settings module."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "Travel Moments"
    debug: bool = False
    secret_key: str = "change-me-in-production"
    allowed_hosts: list[str] = ["*"]

    # Database (SQLite unless a PostgreSQL name is configured)
    db_engine: str = "django.db.backends.sqlite3"
    db_name: str = "db.sqlite3"
    db_user: str = ""
    db_password: str = ""
    db_host: str = ""
    db_port: str = ""

    # Redis / Celery
    redis_url: str = "redis://localhost:6379/0"
    # Set CELERY_TASK_ALWAYS_EAGER=true to run tasks inline without a worker
    celery_task_always_eager: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
