"""
Inventory and per-SKU metric schemas.

Inventory is caller-owned: services never mutate it. Quantities are floats
because simulated depletion is fractional (e.g. 41 Queen/month x 0.83).
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema


class SkuStatus(str, Enum):
    """Coverage classification of a single (size, firmness) SKU."""
    CRITICAL = "CRITICAL"        # Projected coverage below the size's minimum
    NORMAL = "NORMAL"
    OVERSTOCKED = "OVERSTOCKED"  # Projected coverage above overstock threshold


class Inventory(BaseSchema):
    """
    Warehouse stock.

    springs:    firmness -> size -> quantity
    components: component_id -> size -> quantity
    """

    springs: dict[str, dict[str, float]] = Field(default_factory=dict)
    components: dict[str, dict[str, float]] = Field(default_factory=dict)

    def spring_stock(self, firmness: str, size: str) -> float:
        return self.springs.get(firmness, {}).get(size, 0.0)

    def total_springs(self, size: str) -> float:
        """Stock for a size summed over every firmness."""
        return sum(by_size.get(size, 0.0) for by_size in self.springs.values())

    def component_stock(self, component_id: str, size: str) -> float:
        return self.components.get(component_id, {}).get(size, 0.0)


class PendingOrder(BaseSchema):
    """
    A container already ordered but not yet arrived.

    Quantities come either per firmness (`springs`, firmness -> size -> qty)
    or as per-size totals (`springs_by_size`) that are split by the size's
    firmness distribution.
    """

    arrival_week_index: float = Field(..., description="Weeks from now until arrival")
    springs: Optional[dict[str, dict[str, float]]] = None
    springs_by_size: Optional[dict[str, float]] = None


class SkuMetric(BaseSchema):
    """Coverage metrics for one SKU at the prospective arrival of a new order."""

    size: str
    firmness: str
    weekly_demand: float = Field(0, ge=0)
    current_stock: float = Field(0, ge=0)
    pending_stock: float = Field(0, ge=0)
    projected_stock: float = Field(0, ge=0, description="Stock when the new order would arrive")
    projected_coverage: float = Field(0, ge=0, description="Weeks of stock at arrival (inf if no demand)")
    status: SkuStatus
    target_stock: float = Field(0, ge=0, description="Stock for minimum coverage")
    units_needed: float = Field(0, ge=0, description="Units to reach target_stock")
