"""
Order schemas: pallets, spring orders, latex orders and component orders.

Invariants:
    - every Pallet.total equals the configured pallet capacity
    - sum of pallet totals == metadata.total_pallets x capacity
    - springs aggregate equals the sum over pallets
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.inventory import Inventory, PendingOrder, SkuMetric


# component_id -> size -> quantity
ComponentOrder = dict[str, dict[str, int]]


class PalletType(str, Enum):
    """Pallet classification."""
    PURE = "Pure"          # Single firmness
    MIXED = "Mixed"        # Several firmnesses
    CRITICAL = "Critical"  # Single pallet sent to an urgent size


class ExportFormat(str, Enum):
    """Component quantity format for supplier export."""
    EXACT = "exact"
    OPTIMIZED = "optimized"  # Rounded to lot sizes with buffer


class Pallet(BaseSchema):
    """A fixed-capacity pallet of one size."""

    id: int = Field(..., ge=1)
    size: str
    type: PalletType
    firmness_breakdown: dict[str, int] = Field(default_factory=dict)
    total: int = Field(..., ge=0)


class OrderMetadata(BaseSchema):
    """Summary statistics for a spring order."""

    total_pallets: int = Field(0, ge=0, description="Pallets actually packed")
    requested_pallets: int = Field(0, ge=0, description="Container size asked for")
    unallocated_pallets: int = Field(0, ge=0, description="Requested pallets no size could take")
    total_units: int = Field(0, ge=0)
    pure_pallets: int = 0
    mixed_pallets: int = 0
    critical_pallets: int = 0
    pallets_by_size: dict[str, int] = Field(default_factory=dict)
    high_volume_pallets: int = 0
    small_size_pallets: int = 0
    sizes_allocated: list[str] = Field(default_factory=list)
    critical_skus: int = 0
    overstocked_skus: int = 0
    strategy: str = ""


class SpringOrder(BaseSchema):
    """Springs to order in one container."""

    springs: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="firmness -> size -> quantity"
    )
    pallets: list[Pallet] = Field(default_factory=list)
    metadata: OrderMetadata = Field(default_factory=OrderMetadata)
    sku_metrics: list[SkuMetric] = Field(default_factory=list)

    def units_for(self, firmness: str, size: str) -> int:
        return self.springs.get(firmness, {}).get(size, 0)

    def total_for_size(self, size: str) -> int:
        return sum(by_size.get(size, 0) for by_size in self.springs.values())


class FullOrder(BaseSchema):
    """Spring order plus the components that keep pace with it."""

    spring_order: SpringOrder
    component_order: ComponentOrder


class LatexOrderMetadata(BaseSchema):
    """Summary statistics for a loose-item latex order."""

    total_items: int = Field(0, ge=0)
    container_capacity: int = Field(0, ge=0)
    capacity_used_percent: int = Field(0, ge=0)
    total_by_size: dict[str, int] = Field(default_factory=dict)
    total_by_firmness: dict[str, int] = Field(default_factory=dict)
    target_runout_weeks: float = Field(0, ge=0, description="Week every SKU should run out together")
    critical_skus: int = 0
    overstocked_skus: int = 0
    algorithm: str = "equal_runout"


class LatexOrder(BaseSchema):
    """Latex items to order in one container."""

    latex: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="firmness -> size -> quantity"
    )
    metadata: LatexOrderMetadata = Field(default_factory=LatexOrderMetadata)
    sku_metrics: list[SkuMetric] = Field(default_factory=list)

    def units_for(self, firmness: str, size: str) -> int:
        return self.latex.get(firmness, {}).get(size, 0)


# ===================
# REQUESTS
# ===================

class SkuMetricsRequest(BaseSchema):
    """Request SKU coverage metrics."""

    inventory: Inventory = Field(default_factory=Inventory)
    pending_orders: list[PendingOrder] = Field(default_factory=list)
    order_week_offset: float = Field(0, ge=0, description="Weeks until the order is placed")
    product_line: Optional[str] = None


class SpringOrderRequest(SkuMetricsRequest):
    """Request a spring order for a container."""

    pallet_count: int = Field(8, ge=4, le=12, description="Pallets in the container")
    strategy: Optional[str] = Field(
        None,
        pattern="^(coverage_proportional|dominant_sku)$",
        description="Override the configured allocation strategy"
    )


class ComponentOrderRequest(BaseSchema):
    """Request a component order for an existing spring order."""

    spring_order: SpringOrder
    inventory: Inventory = Field(default_factory=Inventory)
    product_line: Optional[str] = None


class LotSizeRequest(BaseSchema):
    """Request lot-size rounding of a component order."""

    component_order: ComponentOrder
    product_line: Optional[str] = None


class LatexOrderRequest(SkuMetricsRequest):
    """Request a latex order filling one container."""

    container_capacity: int = Field(340, ge=1, description="170 (20ft) or 340 (40ft) units")
    product_line: Optional[str] = "latex"
