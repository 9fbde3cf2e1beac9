"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # SQL database (DATABASE_URL wins over the postgres_* fields)
    database_url: Optional[str] = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "schoolconnect"
    postgres_password: str = "password"
    postgres_db: str = "schoolconnect"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_echo: bool = False

    # MongoDB (resume files live in a GridFS bucket)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "schoolconnect_files"
    mongodb_timeout_ms: int = 5000
    resume_bucket: str = "resumes"
    max_resume_size_mb: int = 5

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Two-factor login
    require_two_factor: bool = True
    two_factor_code_ttl_minutes: int = 10
    two_factor_max_attempts: int = 5

    # Email notifications (Resend)
    resend_api_key: str = ""
    email_from: str = "Student-Employer Connect <notifications@resend.dev>"
    notifications_enabled: bool = True

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    debug: bool = False

    @property
    def sql_url(self) -> str:
        """Construct the SQLAlchemy connection URL"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def max_resume_size_bytes(self) -> int:
        return self.max_resume_size_mb * 1024 * 1024

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
