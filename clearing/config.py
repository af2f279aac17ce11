"""
Configuration management using Pydantic

This module provides application-wide configuration using Pydantic BaseSettings
with support for environment variables and type validation.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings.
    
    All settings can be overridden using environment variables prefixed
    with ``CLEARING_``. For example, CLEARING_LOG_LEVEL overrides log_level.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="CLEARING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Matching Parameters
    market_orders_first: bool = Field(
        default=False,
        description="Rank market orders ahead of limit orders on their side"
    )
    
    # Console Output
    display_book: bool = Field(
        default=True,
        description="Print the book before and after every sweep"
    )
    
    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_dir: Optional[str] = Field(
        default=None,
        description="Directory for log files (console only when unset)"
    )
    use_json_logs: bool = Field(
        default=False,
        description="Emit structured JSON log lines"
    )
    
    # API Configuration
    api_host: str = Field(default="localhost", description="Replay API host")
    api_port: int = Field(default=8000, description="Replay API port")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance.
    
    Returns:
        Settings instance
    """
    return settings
