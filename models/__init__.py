"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.inventory import (
    Inventory,
    PendingOrder,
    SkuMetric,
    SkuStatus,
)
from models.order import (
    ComponentOrder,
    ComponentOrderRequest,
    ExportFormat,
    FullOrder,
    LatexOrder,
    LatexOrderMetadata,
    LatexOrderRequest,
    LotSizeRequest,
    OrderMetadata,
    Pallet,
    PalletType,
    SkuMetricsRequest,
    SpringOrder,
    SpringOrderRequest,
)
from models.projection import (
    AnnualProjection,
    ContainerOrder,
    DrivingSize,
    FixedOrder,
    InventorySnapshot,
    OrderCalendarRequest,
    OrderRecommendation,
    OrderTimingCalendar,
    OrderUrgency,
    ProjectionRequest,
    RepeatProjectionRequest,
    SizeProjection,
)

__all__ = [
    # Base
    "BaseSchema",

    # Inventory
    "Inventory",
    "PendingOrder",
    "SkuMetric",
    "SkuStatus",

    # Orders
    "ComponentOrder",
    "ComponentOrderRequest",
    "ExportFormat",
    "FullOrder",
    "LatexOrder",
    "LatexOrderMetadata",
    "LatexOrderRequest",
    "LotSizeRequest",
    "OrderMetadata",
    "Pallet",
    "PalletType",
    "SkuMetricsRequest",
    "SpringOrder",
    "SpringOrderRequest",

    # Projection
    "AnnualProjection",
    "ContainerOrder",
    "DrivingSize",
    "FixedOrder",
    "InventorySnapshot",
    "OrderCalendarRequest",
    "OrderRecommendation",
    "OrderTimingCalendar",
    "OrderUrgency",
    "ProjectionRequest",
    "RepeatProjectionRequest",
    "SizeProjection",
]
