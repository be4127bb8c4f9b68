"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety. Business rules
(sales rates, thresholds, container limits) are NOT settings: they live
in ReplenishmentConfig (config/replenishment.py) and are passed explicitly.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.
    
    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """
    
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )
    
    # ===================
    # BUSINESS CONFIG SELECTION
    # ===================
    default_product_line: str = Field(
        default="springs",
        pattern="^(springs|latex)$",
        description="Product line used when a request does not name one"
    )
    replenishment_config_file: Optional[str] = Field(
        None,
        description="Optional JSON file overriding the built-in business config"
    )
    
    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    
    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.
    
    Returns:
        Settings: Application settings
        
    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
