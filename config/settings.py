"""Application settings using Pydantic Settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from schemas.table_schema import Dialect


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database to introspect when generating models
    database_url: str | None = None

    # Model generation
    output_path: str = "generated/models"
    table_names: str = ""

    # Parsing
    default_dialect: Dialect | None = None

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level name."""
        return v.upper()

    @property
    def table_name_list(self) -> list[str]:
        """Configured table names; empty means every table."""
        return [name.strip() for name in self.table_names.split(",") if name.strip()]


settings = Settings()
