"""
Environment configuration for the leave engine.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application configuration
    APP_NAME: str = Field(default="Merid Leave Engine", alias="PROJECT_NAME")
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    TIMEZONE: str = "Europe/Zurich"

    # Database configuration
    DATABASE_URL: str = "sqlite:///./leave_engine.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_POOL_OVERFLOW: int = 5
    DB_CONNECT_ARGS: Dict[str, Any] = {}

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_FILE: Optional[str] = None
    LOG_RETENTION: int = 14
    ENABLE_STRUCTURED_LOGGING: bool = False

    # Leave policy
    DEFAULT_WORKING_DAYS: List[str] = Field(
        default=["MON", "TUE", "WED", "THU", "FRI"]
    )
    DEFAULT_WORKFLOW_STEPS: List[str] = Field(default=["MANAGER"])
    ALLOW_NEGATIVE_BALANCE: bool = False
    EXCEPTIONAL_LEAVE_CODE: str = "EXCEPTIONAL"
    SICK_LEAVE_CODE: str = "SICK"

    @field_validator('DEFAULT_WORKING_DAYS', 'DEFAULT_WORKFLOW_STEPS', mode='before')
    @classmethod
    def parse_code_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse comma separated or JSON list strings into upper-case codes"""
        if isinstance(v, str):
            if v.startswith('[') and v.endswith(']'):
                try:
                    v = json.loads(v)
                except json.JSONDecodeError:
                    v = v.strip('[]').split(',')
            else:
                v = v.split(',')
        return [str(item).strip().upper() for item in v if str(item).strip()]

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"text", "json"}:
            raise ValueError(f"Invalid log format: {v}")
        return fmt

    def get_database_url(self) -> str:
        """Get database URL"""
        return self.DATABASE_URL

    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite"""
        return self.DATABASE_URL.startswith("sqlite")

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
