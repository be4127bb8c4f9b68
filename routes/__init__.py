"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.config import router as config_router
from routes.orders import router as orders_router
from routes.projection import router as projection_router

__all__ = [
    "config_router",
    "orders_router",
    "projection_router",
]
