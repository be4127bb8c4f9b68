"""
Latex order service.

Latex ships loose, so there are no pallets: a container of 170 or 340 units
is filled item by item so that every SKU runs out in the same week.

    T = (capacity + total projected stock) / total weekly demand
    qty(sku) = T x weekly demand(sku) - projected stock(sku)

Quantities are rounded to the batch increment. Rounding drift is settled
one batch at a time: leftover capacity goes to the SKU with the lowest
coverage after the order, overshoot comes off the SKU with the highest.
"""

import math
from typing import Optional
import structlog

from config.replenishment import ReplenishmentConfig, get_replenishment_config
from exceptions import InvalidContainerCapacityError, UnsupportedOperationError
from models.inventory import Inventory, PendingOrder, SkuMetric, SkuStatus
from models.order import LatexOrder, LatexOrderMetadata
from services.coverage_service import CoverageService

logger = structlog.get_logger(__name__)


def _sku_key(metric: SkuMetric) -> tuple[str, str]:
    return metric.firmness, metric.size


class LatexOrderService:
    """Equal-runout allocation of one container across latex SKUs."""

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config("latex")
        self.coverage_service = CoverageService(self.config)

    def calculate_latex_order(
        self,
        container_capacity: int,
        inventory: Inventory,
        pending_orders: Optional[list[PendingOrder]] = None,
        order_week_offset: float = 0,
    ) -> LatexOrder:
        """
        Build a latex order for one container.

        Args:
            container_capacity: Units the container holds (one of the configured capacities)
            inventory: Current warehouse stock (not mutated)
            pending_orders: Containers already ordered
            order_week_offset: Weeks from now until the order is placed

        Returns:
            LatexOrder with quantities, metadata and the SKU metrics used

        Raises:
            UnsupportedOperationError: Product line ships on pallets
            InvalidContainerCapacityError: Capacity not offered for this line
        """
        config = self.config
        if config.is_pallet_based:
            raise UnsupportedOperationError(config.product_line, "Latex container order")
        if container_capacity not in config.container_capacities:
            raise InvalidContainerCapacityError(container_capacity, config.container_capacities)

        metrics = self.coverage_service.calculate_sku_metrics(inventory, pending_orders, order_week_offset)
        allocation, target_weeks = self.allocate_equal_runout(container_capacity, metrics)

        latex = {f: {size: 0 for size in config.sizes} for f in config.firmnesses}
        for (firmness, size), qty in allocation.items():
            latex[firmness][size] = qty

        metadata = self._build_metadata(container_capacity, latex, metrics, target_weeks)

        logger.info(
            "latex_order_calculated",
            product_line=config.product_line,
            container_capacity=container_capacity,
            total_items=metadata.total_items,
            target_runout_weeks=round(target_weeks, 1),
        )
        return LatexOrder(latex=latex, metadata=metadata, sku_metrics=metrics)

    def allocate_equal_runout(
        self,
        container_capacity: int,
        metrics: list[SkuMetric],
    ) -> tuple[dict[tuple[str, str], int], float]:
        """
        Split a container so all SKUs with demand run out together.

        Returns:
            ((firmness, size) -> quantity, target runout week)
        """
        batch = self.config.batch_increment
        allocation = {_sku_key(m): 0 for m in metrics}

        selling = [m for m in metrics if m.weekly_demand > 0]
        if not selling:
            logger.warning("latex_allocation_no_demand")
            return allocation, 0.0

        total_demand = sum(m.weekly_demand for m in selling)
        total_stock = sum(m.projected_stock for m in selling)
        target_weeks = (container_capacity + total_stock) / total_demand

        for m in selling:
            ideal = target_weeks * m.weekly_demand - m.projected_stock
            allocation[_sku_key(m)] = max(0, int(math.floor(ideal / batch + 0.5)) * batch)

        def coverage_after(m: SkuMetric) -> float:
            return (m.projected_stock + allocation[_sku_key(m)]) / m.weekly_demand

        difference = container_capacity - sum(allocation.values())
        while abs(difference) >= batch:
            if difference > 0:
                lowest = min(selling, key=coverage_after)
                allocation[_sku_key(lowest)] += batch
                difference -= batch
            else:
                reducible = [m for m in selling if allocation[_sku_key(m)] >= batch]
                if not reducible:
                    break
                highest = max(reducible, key=coverage_after)
                allocation[_sku_key(highest)] -= batch
                difference += batch

        logger.debug(
            "latex_allocated",
            target_runout_weeks=round(target_weeks, 1),
            unassigned=difference,
        )
        return allocation, target_weeks

    def _build_metadata(
        self,
        container_capacity: int,
        latex: dict[str, dict[str, int]],
        metrics: list[SkuMetric],
        target_weeks: float,
    ) -> LatexOrderMetadata:
        config = self.config
        total_by_size = {size: sum(latex[f][size] for f in config.firmnesses) for size in config.sizes}
        total_by_firmness = {f: sum(latex[f].values()) for f in config.firmnesses}
        total = sum(total_by_size.values())

        return LatexOrderMetadata(
            total_items=total,
            container_capacity=container_capacity,
            capacity_used_percent=int(math.floor(total / container_capacity * 100 + 0.5)),
            total_by_size=total_by_size,
            total_by_firmness=total_by_firmness,
            target_runout_weeks=target_weeks,
            critical_skus=sum(1 for m in metrics if m.status == SkuStatus.CRITICAL),
            overstocked_skus=sum(1 for m in metrics if m.status == SkuStatus.OVERSTOCKED),
        )
