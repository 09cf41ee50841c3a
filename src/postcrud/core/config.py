from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config_models import DatabaseConfig, LoggingConfig


class Settings(BaseSettings):
    """Settings assembled from environment variables, the .env file and defaults."""

    # Environment
    environment: str = Field(default="development", pattern="^(development|staging|production|testing)$")
    debug: bool = Field(default=False)

    # Raw connection string, consumed by the database sub-config
    database_url: str | None = Field(default=None)
    db_run_migrations: bool = Field(default=True)
    db_verify_schema: bool = Field(default=True)

    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Database (populated in validator)
    database: DatabaseConfig | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _assemble_subconfigs(self):
        """Assemble nested configurations from environment variables."""
        if not self.database_url:
            raise ValueError("DATABASE_URL environment variable is required")

        self.database = DatabaseConfig(
            url=self.database_url,
            echo=self.environment == "development" and self.debug,
            run_migrations=self.db_run_migrations,
            verify_schema=self.db_verify_schema,
        )

        if self.environment == "production":
            self.logging.level = "WARNING"
        elif self.environment == "development":
            self.logging.level = "DEBUG"

        return self


@lru_cache
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()
