"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from shared_kernel.outbox.backoff import BackoffPolicy


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        STOREFRONT_DB_HOST: Database host (default: localhost)
        STOREFRONT_DB_PORT: Database port (default: 5432)
        STOREFRONT_DB_DATABASE: Database name (default: storefront)
        STOREFRONT_DB_USERNAME: Database user (default: storefront)
        STOREFRONT_DB_PASSWORD: Database password (required in production)
        STOREFRONT_DB_POOL_SIZE: Connections kept in the pool (default: 10)
        STOREFRONT_DB_URL: Full async URL, overrides the fields above
    """

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="storefront", description="Database name")
    username: str = Field(default="storefront", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_size: int = Field(
        default=10,
        description="Connections kept in the pool",
        ge=1,
        le=100,
    )
    url: str | None = Field(
        default=None,
        description="Full SQLAlchemy async URL (e.g. sqlite+aiosqlite:///outbox.db)",
    )

    @property
    def async_url(self) -> str:
        """Build the async database URL.

        Percent-encodes credentials using SQLAlchemy's URL builder.
        """
        if self.url:
            return self.url
        return URL.create(
            drivername="postgresql+asyncpg",
            username=self.username,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.database,
        ).render_as_string(hide_password=False)

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        if self.url:
            return make_url(self.url).render_as_string(hide_password=True)
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class OutboxSettings(BaseSettings):
    """Outbox processing settings.

    Environment variables use the STOREFRONT_OUTBOX_ prefix, e.g.
    STOREFRONT_OUTBOX_BATCH_SIZE=100 or STOREFRONT_OUTBOX_ENABLED=false.
    """

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_OUTBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Run the outbox processor")
    poll_interval_seconds: float = Field(
        default=5, gt=0, description="Delay between ready-event sweeps"
    )
    retry_interval_seconds: float = Field(
        default=30, gt=0, description="Delay between retry sweeps"
    )
    stuck_check_interval_seconds: float = Field(
        default=3600, gt=0, description="Delay between stuck-processing sweeps"
    )
    stuck_threshold_minutes: float = Field(
        default=60, gt=0, description="Age after which a claim is considered abandoned"
    )
    cleanup_interval_seconds: float = Field(
        default=86400, gt=0, description="Delay between retention sweeps"
    )
    retention_days: int = Field(
        default=7, ge=1, description="Days terminal events are kept"
    )
    batch_size: int = Field(
        default=50, ge=1, le=1000, description="Events claimed per sweep"
    )
    max_retries: int = Field(
        default=3, ge=0, description="Failures tolerated before dead-lettering"
    )
    backoff_base_seconds: float = Field(
        default=60, gt=0, description="Delay after the first failure"
    )
    backoff_multiplier: float = Field(
        default=5.0, ge=1, description="Backoff growth factor"
    )
    backoff_max_seconds: float = Field(
        default=3600, gt=0, description="Upper bound on the retry delay"
    )
    executor_max_workers: int = Field(
        default=10, ge=1, description="Concurrent dispatches"
    )
    executor_queue_capacity: int = Field(
        default=100, ge=0, description="Dispatches waiting for a worker"
    )
    instance_id: str | None = Field(
        default=None,
        description="Processor instance id (generated from hostname if unset)",
    )

    @model_validator(mode="after")
    def validate_backoff_settings(self) -> "OutboxSettings":
        """Validate backoff cap >= base."""
        if self.backoff_max_seconds < self.backoff_base_seconds:
            raise ValueError(
                f"backoff_max_seconds ({self.backoff_max_seconds}) must be >= "
                f"backoff_base_seconds ({self.backoff_base_seconds})"
            )
        return self

    @property
    def stuck_threshold(self) -> timedelta:
        return timedelta(minutes=self.stuck_threshold_minutes)

    def backoff_policy(self) -> BackoffPolicy:
        """Build the retry backoff policy from these settings."""
        return BackoffPolicy(
            base_delay=timedelta(seconds=self.backoff_base_seconds),
            multiplier=self.backoff_multiplier,
            max_delay=timedelta(seconds=self.backoff_max_seconds),
        )


class NotificationSettings(BaseSettings):
    """Notification delivery settings.

    Environment variables use the STOREFRONT_NOTIFICATIONS_ prefix.
    Mailgun and Twilio providers are registered only when their
    credentials are present.
    """

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_NOTIFICATIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_locale: str = Field(default="en", description="Fallback template locale")
    use_logging_providers: bool = Field(
        default=True,
        description="Register log-only providers for every channel",
    )
    provider_timeout_seconds: float = Field(default=10, gt=0)

    mailgun_api_key: SecretStr | None = None
    mailgun_domain: str | None = None
    mailgun_from: str = Field(default="Storefront <no-reply@example.com>")
    mailgun_base_url: str = Field(default="https://api.mailgun.net/v3")

    twilio_account_sid: str | None = None
    twilio_auth_token: SecretStr | None = None
    twilio_from_number: str | None = None
    twilio_whatsapp_from: str | None = None
    twilio_base_url: str = Field(default="https://api.twilio.com/2010-04-01")

    @property
    def mailgun_configured(self) -> bool:
        return self.mailgun_api_key is not None and bool(self.mailgun_domain)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid) and self.twilio_auth_token is not None


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="Storefront Notifications", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def outbox(self) -> OutboxSettings:
        """Get outbox settings."""
        return get_outbox_settings()

    @property
    def notifications(self) -> NotificationSettings:
        """Get notification settings."""
        return get_notification_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings."""
    return DatabaseSettings()


@lru_cache
def get_outbox_settings() -> OutboxSettings:
    """Get cached outbox settings."""
    return OutboxSettings()


@lru_cache
def get_notification_settings() -> NotificationSettings:
    """Get cached notification settings."""
    return NotificationSettings()
