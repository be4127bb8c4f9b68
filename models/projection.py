"""
Annual projection schemas.

A projection is a month-by-month simulation of depletion with container
orders placed to prevent stockouts.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.inventory import Inventory
from models.order import SpringOrder, ComponentOrder


class OrderUrgency(str, Enum):
    """How pressing an order was when it was placed."""
    URGENT = "urgent"
    PLAN_SOON = "plan_soon"
    COMFORTABLE = "comfortable"


class DrivingSize(BaseSchema):
    """A size that contributed to triggering an order."""

    size: str
    coverage: float = Field(..., ge=0, description="Months of coverage at order time")


class ContainerOrder(BaseSchema):
    """A container order placed during the simulation. Never mutated after creation."""

    id: str = Field(..., description="order-1, order-2, ...")
    order_month: int = Field(..., ge=0, description="Month offset when placed")
    order_month_name: str
    arrival_month: float = Field(..., ge=0, description="order_month + lead time in months")
    arrival_month_name: str
    pallet_count: int = Field(..., ge=0)
    spring_order: SpringOrder
    component_order: ComponentOrder
    reason: str
    urgency: OrderUrgency
    driving_sizes: list[str] = Field(default_factory=list)


class InventorySnapshot(BaseSchema):
    """Read-only capture of inventory at the start of a month (before depletion)."""

    month: int = Field(..., ge=0)
    month_name: str
    inventory: Inventory
    coverage: dict[str, float] = Field(
        default_factory=dict,
        description="Months of coverage keyed by 'Size' and 'Size_firmness'"
    )
    critical_sizes: list[str] = Field(default_factory=list)
    stockout_sizes: list[str] = Field(default_factory=list)


class AnnualProjection(BaseSchema):
    """Result of a multi-month projection."""

    orders: list[ContainerOrder] = Field(default_factory=list)
    snapshots: list[InventorySnapshot] = Field(default_factory=list)
    total_containers: int = 0
    total_pallets: int = 0
    total_units: int = 0
    has_stockout: bool = False
    stockout_months: list[int] = Field(default_factory=list)


class FixedOrder(BaseSchema):
    """A caller-supplied order reused at every trigger (repeat / what-if mode)."""

    spring_order: SpringOrder
    component_order: ComponentOrder
    pallet_count: int = Field(..., ge=1)


# ===================
# ORDER TIMING CALENDAR
# ===================

class SizeProjection(BaseSchema):
    """Projected stock of one size at a future month."""

    size: str
    current_stock: float = Field(..., ge=0)
    projected_stock: float = Field(..., ge=0)
    coverage: float = Field(..., ge=0, description="Months of coverage at that month's seasonal rate")
    monthly_sales_rate: float = Field(..., ge=0, description="Seasonally adjusted")


class OrderRecommendation(BaseSchema):
    """A month in which at least one size falls under the order threshold."""

    month_offset: int = Field(..., ge=0)
    month_name: str
    urgency: OrderUrgency
    critical_sizes: list[SizeProjection] = Field(default_factory=list, description="Tightest first")
    all_sizes: list[SizeProjection] = Field(default_factory=list)
    days_until: int = Field(..., ge=0)
    reason: str


class OrderTimingCalendar(BaseSchema):
    """Read-only order timing outlook, no orders placed."""

    recommendations: list[OrderRecommendation] = Field(default_factory=list)
    next_order: Optional[OrderRecommendation] = None
    current_month: int = 0


# ===================
# REQUESTS
# ===================

class ProjectionRequest(BaseSchema):
    """Request an annual projection."""

    inventory: Inventory = Field(default_factory=Inventory)
    current_month: int = Field(0, ge=0, le=11, description="Calendar month index (0 = January)")
    fixed_order: Optional[FixedOrder] = None
    product_line: Optional[str] = None


class RepeatProjectionRequest(BaseSchema):
    """Request a projection that repeats one order at fixed intervals."""

    inventory: Inventory = Field(default_factory=Inventory)
    fixed_order: FixedOrder
    current_month: int = Field(0, ge=0, le=11)
    num_orders: int = Field(2, ge=1, le=6)
    product_line: Optional[str] = None


class OrderCalendarRequest(BaseSchema):
    """Request an order timing calendar."""

    inventory: Inventory = Field(default_factory=Inventory)
    current_month: int = Field(0, ge=0, le=11)
    product_line: Optional[str] = None
