"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    ReplenishmentConfig: Business configuration passed to every service
    get_replenishment_config: Resolve the config for a product line
"""

from config.settings import settings, get_settings, Settings
from config.replenishment import (
    ReplenishmentConfig,
    AllocationStrategy,
    ComponentType,
    Consolidation,
    MONTH_NAMES,
    spring_config,
    latex_config,
    load_config_file,
    get_replenishment_config,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Business configuration
    "ReplenishmentConfig",
    "AllocationStrategy",
    "ComponentType",
    "Consolidation",
    "MONTH_NAMES",
    "spring_config",
    "latex_config",
    "load_config_file",
    "get_replenishment_config",
]
