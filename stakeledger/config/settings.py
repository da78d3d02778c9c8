"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    # Default is a process-local in-memory SQLite store; point at
    # postgresql+asyncpg://... for a durable deployment.
    database_url: str = "sqlite+aiosqlite://"
    database_echo: bool = False

    # Application
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Referral codes
    referral_code_prefix: str = Field(
        default="REF",
        max_length=8,
        description="Prefix for generated referral codes",
    )
    referral_code_length: int = Field(
        default=6,
        description="Number of random characters after the prefix",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_referral_code_length(self) -> "Settings":
        """Generated codes must fit the referral_code column."""
        if self.referral_code_length <= 0:
            raise ValueError("REFERRAL_CODE_LENGTH must be positive")
        if len(self.referral_code_prefix) + self.referral_code_length > 20:
            raise ValueError(
                "REFERRAL_CODE_PREFIX + REFERRAL_CODE_LENGTH must not exceed "
                "20 characters"
            )
        return self

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "DATABASE_URL must point at a durable database in "
                    "production (in-memory SQLite loses the ledger on exit)."
                )
        return self

    @property
    def is_in_memory(self) -> bool:
        """True when the store lives only inside this process."""
        return is_in_memory_url(self.database_url)


def is_in_memory_url(database_url: str) -> bool:
    """
    Check whether a database URL names a process-local SQLite store.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        True for ``sqlite://`` / ``sqlite+aiosqlite://`` URLs without a
        file path, or with ``:memory:``
    """
    if not database_url.startswith("sqlite"):
        return False
    _, _, path = database_url.partition("://")
    return path in ("", "/", "/:memory:") or ":memory:" in path


# Global settings instance
settings = Settings()
