from pydantic_settings import BaseSettings
from typing import Optional
import logging


class Settings(BaseSettings):
    # Database - Handle Render's postgres:// URL format
    DATABASE_URL: str = "sqlite:///./partner_onboarding.db"

    APP_NAME: str = "Partner Onboarding Service"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS - comma-separated list of dashboard origins
    CORS_ORIGINS: str = "http://localhost:3000"
    FRONTEND_URL: str = "http://localhost:3000"

    # Onboarding defaults
    ONBOARDING_TARGET_DAYS: int = 25  # expected completion = started_at + N days

    # Approvals
    APPROVER_NOTIFICATION_RECIPIENT: str = "approvers"

    # Schema management
    RUN_MIGRATIONS_ON_STARTUP: bool = False

    # Error Tracking (Sentry)
    SENTRY_DSN: Optional[str] = None

    @property
    def database_url_fixed(self) -> str:
        """Fix Render's postgres:// to postgresql:// for SQLAlchemy"""
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url_fixed.startswith("sqlite")

    @property
    def cors_origins_list(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.LOG_LEVEL.upper())
        return level if isinstance(level, int) else logging.INFO

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
