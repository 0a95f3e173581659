"""Configuration settings for the employees-sql application."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database Configuration
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=3306)
    db_name: str = Field(default="employees")
    db_user: str = Field(default="root")
    db_password: str = Field(default="")
    db_charset: str = Field(default="utf8mb4")
    db_connect_timeout: int = Field(default=10)

    # Application Configuration
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default="employees_sql.log")

    # CLI Configuration
    default_output_format: str = Field(default="table")
    default_departments: str = Field(default="d001,d002")

    @property
    def departments(self) -> List[str]:
        """Department numbers from the comma separated DEFAULT_DEPARTMENTS."""
        return [part.strip() for part in self.default_departments.split(",") if part.strip()]

    @property
    def database_url(self) -> str:
        """Generate a SQLAlchemy-style database URL."""
        return f"mysql+mysqlconnector://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
