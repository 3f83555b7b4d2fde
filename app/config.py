"""Configuration management using Pydantic Settings."""

from typing import Optional

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # FastAPI
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=5000)
    debug: bool = Field(default=False)
    environment: str = Field(default="production")

    # Database (MySQL report schema)
    database_host: str = Field(default="localhost")
    database_user: str = Field(default="root")
    database_password: str = Field(default="")
    database_name: str = Field(default="report")
    database_port: int = Field(default=3306)
    database_connection_limit: int = Field(default=10, ge=1)
    database_pool_timeout: float = Field(default=30.0, gt=0)
    database_schema: Optional[str] = Field(default=None)
    # Full URL override, e.g. for tests or a non-MySQL engine
    database_url: Optional[str] = Field(default=None)

    # Reporting
    query_timeout_seconds: float = Field(default=10.0, gt=0)
    report_timezone: Optional[str] = Field(default=None)

    # Monitoring
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("report_timezone")
    @classmethod
    def validate_report_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def database_url_async(self) -> str:
        """Async SQLAlchemy URL; DATABASE_URL wins over the discrete fields."""
        if self.database_url:
            return self.database_url
        url = URL.create(
            "mysql+aiomysql",
            username=self.database_user,
            password=self.database_password or None,
            host=self.database_host,
            port=self.database_port,
            database=self.database_name,
        )
        return url.render_as_string(hide_password=False)


# Global settings instance
settings = Settings()
