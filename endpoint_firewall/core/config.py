"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "Endpoint Firewall"
    APP_ENV: str = Field(default="local")
    DEBUG: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_DIR: Optional[str] = Field(
        default=None,
        description="Directory for the rotating log file. Leave empty to log to stdout only.",
    )

    # Firewall policy
    FIREWALL_FAIL_OPEN: bool = Field(
        default=False,
        description="Allow requests to paths that have no trusted netblocks configured",
    )
    FIREWALL_LOG: bool = Field(
        default=True,
        description="Log every request the firewall drops",
    )
    FIREWALL_RULES: Union[str, Dict[str, List[str]]] = Field(
        default_factory=dict,
        description='Path to trusted netblocks, e.g. {"/hello": ["10.0.0.0/8"]}',
    )
    FIREWALL_RULES_FILE: Optional[str] = Field(
        default=None,
        description="JSON file with the same shape as FIREWALL_RULES, applied after it",
    )

    @field_validator("FIREWALL_RULES", mode="before")
    @classmethod
    def parse_firewall_rules(cls, v):
        """Parse FIREWALL_RULES from a JSON string or a mapping."""
        if isinstance(v, str):
            if not v.strip():
                return {}
            try:
                return json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"FIREWALL_RULES must be a JSON object: {e}") from e
        return v


# Create global settings instance
@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

settings = get_settings()
