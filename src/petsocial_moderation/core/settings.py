"""Moderation service configuration.

Every option maps to an environment variable (or a ``.env`` entry); only
``SECRET_KEY`` has no default.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Async driver prefixes and the synchronous driver Alembic should use instead.
_SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql",
}


class Settings(BaseSettings):
    """Typed view over the service's environment."""

    # Application metadata
    app_name: str = Field(default="PetSocial Moderation", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./petsocial_moderation.db",
        alias="DATABASE_URL",
    )
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Retention of soft-deleted content
    soft_delete_retention_days: int = Field(default=90, alias="SOFT_DELETE_RETENTION_DAYS")

    # Audit queue replay budget
    audit_queue_max_attempts: int = Field(default=5, alias="AUDIT_QUEUE_MAX_ATTEMPTS")
    audit_moderation_decisions: bool = Field(default=True, alias="AUDIT_MODERATION_DECISIONS")

    # Report-count escalation thresholds
    escalation_medium_reports: int = Field(default=2, alias="ESCALATION_MEDIUM_REPORTS")
    escalation_high_reports: int = Field(default=5, alias="ESCALATION_HIGH_REPORTS")
    escalation_urgent_reports: int = Field(default=10, alias="ESCALATION_URGENT_REPORTS")
    ai_score_high_priority_threshold: float = Field(
        default=80.0,
        alias="AI_SCORE_HIGH_PRIORITY_THRESHOLD",
    )

    # Content lookup: unregistered content types resolve to None when strict
    content_lookup_strict: bool = Field(default=False, alias="CONTENT_LOOKUP_STRICT")

    bulk_max_items: int = Field(default=1000, alias="BULK_MAX_ITEMS")

    # In-process sweep scheduling (cron is the default trigger)
    maintenance_worker_enabled: bool = Field(default=False, alias="MAINTENANCE_WORKER_ENABLED")
    maintenance_interval_seconds: float = Field(
        default=300.0,
        alias="MAINTENANCE_INTERVAL_SECONDS",
    )

    # CORS configuration for the admin frontend
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """URL for Alembic and the sweep CLI, with any async driver swapped out."""
        url = self.effective_database_url
        scheme, sep, rest = url.partition("://")
        return f"{_SYNC_DRIVERS.get(scheme, scheme)}{sep}{rest}"

    @property
    def effective_database_url(self) -> str:
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def escalation_thresholds(self) -> dict[str, int]:
        """Return the report-count thresholds keyed by the priority they unlock."""
        return {
            "urgent": self.escalation_urgent_reports,
            "high": self.escalation_high_reports,
            "medium": self.escalation_medium_reports,
        }


settings = Settings()  # type: ignore[call-arg]
