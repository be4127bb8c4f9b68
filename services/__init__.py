"""
Business logic services.

Each service handles one step of the replenishment engine and takes an
explicit ReplenishmentConfig.
"""

from services.coverage_service import CoverageService
from services.allocation_service import (
    PalletAllocator,
    CoverageProportionalAllocator,
    DominantSkuAllocator,
    get_allocator,
)
from services.pallet_service import PalletService
from services.spring_order_service import SpringOrderService
from services.latex_order_service import LatexOrderService
from services.component_service import ComponentService
from services.projection_service import ProjectionService
from services.order_calendar_service import OrderCalendarService

__all__ = [
    "CoverageService",
    "PalletAllocator",
    "CoverageProportionalAllocator",
    "DominantSkuAllocator",
    "get_allocator",
    "PalletService",
    "SpringOrderService",
    "LatexOrderService",
    "ComponentService",
    "ProjectionService",
    "OrderCalendarService",
]
