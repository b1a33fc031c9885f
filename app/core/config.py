"""
Application configuration management
"""
import json
import logging
from typing import Any, List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Ensure repository .env values win over stale exported shell variables.
load_dotenv(override=True)

VALID_PAIRING_MODES = {"key", "positional"}


class Settings(BaseSettings):
    """Application settings"""
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./config_editor.db"
    AUTO_CONNECT: bool = True
    VERIFY_MIGRATIONS: bool = True

    # Editing
    SETTINGS_PAIRING: str = "key"  # key | positional
    NUMBER_LOCALE: str = ""  # LC_NUMERIC for value parsing; empty = from the environment

    # Security
    API_AUTH_ENABLED: bool = False
    API_AUTH_TOKEN: str = ""
    CORS_ORIGINS: str = "http://localhost:8000,http://127.0.0.1:8000"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/config_editor.log"

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    @field_validator('SETTINGS_PAIRING')
    @classmethod
    def validate_pairing(cls, v):
        mode = str(v or "").strip().lower()
        if mode not in VALID_PAIRING_MODES:
            raise ValueError('SETTINGS_PAIRING must be "key" or "positional"')
        return mode

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        level = str(v or "").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f'Unknown LOG_LEVEL: {v}')
        return level

    @field_validator('PORT')
    @classmethod
    def validate_port(cls, v):
        if int(v) <= 0 or int(v) > 65535:
            raise ValueError('PORT must be between 1 and 65535')
        return int(v)

    @staticmethod
    def _parse_str_list(value: Any) -> List[str]:
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        if value is None:
            return []
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return []
            if stripped.startswith('[') and stripped.endswith(']'):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in stripped.split(',') if item.strip()]
        return [str(value).strip()] if str(value).strip() else []

    def get_cors_origins(self) -> List[str]:
        origins = self._parse_str_list(self.CORS_ORIGINS)
        return origins or ["http://localhost:8000", "http://127.0.0.1:8000"]


# Global settings instance
settings = Settings()
