"""
Tab Grouper - Shared Configuration Module

This module provides centralized configuration management for the service.
It loads settings from environment variables and provides typed access.
"""

from pathlib import Path
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM service configuration"""
    provider: Literal["gemini", "openai"] = Field(default="gemini", alias="LLM_PROVIDER")
    api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    api_base: Optional[str] = Field(default=None, alias="LLM_API_BASE")
    openai_api_key: str = Field(default="dummy_key", alias="LLM_API_KEY")
    model_name: str = Field(default="gemini-2.0-flash-001", alias="LLM_MODEL_NAME")
    temperature: Optional[float] = Field(default=None, alias="LLM_TEMPERATURE")
    timeout: float = Field(default=60.0, gt=0, alias="LLM_TIMEOUT")
    max_retries: int = Field(default=3, ge=1, alias="MAX_RETRIES")
    retry_delay: float = Field(default=1.0, ge=0, alias="RETRY_DELAY")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class ServerSettings(BaseSettings):
    """HTTP server configuration"""
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    cors_origins: str = Field(
        default="chrome-extension://dcjoknhdcfdpodgkpmekmmddcloinhak",
        alias="CORS_ORIGINS",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origin_list(self) -> list[str]:
        """Comma separated CORS_ORIGINS as a list"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class AppSettings(BaseSettings):
    """General application settings"""
    env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class Config:
    """Main configuration class that combines all settings"""

    def __init__(self):
        self.llm = LLMSettings()
        self.server = ServerSettings()
        self.app = AppSettings()

    @property
    def is_development(self) -> bool:
        return self.app.env == "development"

    @property
    def is_production(self) -> bool:
        return self.app.env == "production"


# Global config instance
config = Config()


# Helper function to get config
def get_config() -> Config:
    """Get the global configuration instance"""
    return config


def reload_config() -> Config:
    """Re-read settings, e.g. after loading a different env file"""
    global config
    config = Config()
    return config


# Helper function to load environment from file
def load_env(env_file: str = ".env") -> bool:
    """Load environment variables from file, returning whether it existed"""
    from dotenv import load_dotenv
    env_path = Path(env_file)
    if not env_path.exists():
        return False
    load_dotenv(env_path)
    return True
