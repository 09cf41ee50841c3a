from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """Database connection and bootstrap configuration."""

    url: str = Field(..., description="Database connection URL")
    echo: bool = Field(default=False, description="Enable SQL query logging")
    run_migrations: bool = Field(
        default=True, description="Apply pending migrations when connecting"
    )
    verify_schema: bool = Field(
        default=True, description="Check the live schema against the declared tables"
    )


class LoggingConfig(BaseModel):
    """Application logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
