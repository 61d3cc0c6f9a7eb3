from datetime import timedelta
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/bizpulse"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    # Redis (durable cooldowns and saved notifications)
    REDIS_URL: str | None = None
    NOTIFICATIONS_REDIS_KEY: str = "bizpulse:notifications"

    # CORS
    FRONTEND_URL: str = "http://localhost:5173"

    # Notification store
    MAX_NOTIFICATIONS: int = 5
    AUTO_REMOVE_DELAY_SECONDS: float = 5.0

    # Business event watcher
    WATCHER_ENABLED: bool = True
    WATCHER_INTERVAL_SECONDS: int = 60

    # Cooldown windows per alert kind
    INVENTORY_ALERT_COOLDOWN_HOURS: float = 12
    OVERDUE_INVOICE_COOLDOWN_DAYS: float = 7
    UPCOMING_MAINTENANCE_COOLDOWN_DAYS: float = 3

    # Cooldown storage circuit breaker
    COOLDOWN_FAILURE_THRESHOLD: int = 5
    COOLDOWN_RECOVERY_TIMEOUT: int = 30

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    DOCS_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def sqlalchemy_echo(self) -> bool:
        """SQL echo only outside production."""
        return self.DEBUG and self.ENVIRONMENT != "production"

    @property
    def cooldown_windows(self) -> dict[str, timedelta]:
        """Cooldown window per alert kind, keyed by the kind's string value."""
        return {
            "inventory_alert": timedelta(hours=self.INVENTORY_ALERT_COOLDOWN_HOURS),
            "overdue_invoice": timedelta(days=self.OVERDUE_INVOICE_COOLDOWN_DAYS),
            "upcoming_maintenance": timedelta(days=self.UPCOMING_MAINTENANCE_COOLDOWN_DAYS),
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
