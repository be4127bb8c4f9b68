"""
Coverage calculator and SKU classifier.

Turns stock into time-based coverage and labels each (size, firmness) SKU
CRITICAL / NORMAL / OVERSTOCKED at the moment a new order would arrive.

Coverage rules:
    coverage = stock / demand
    demand == 0 and stock > 0  -> inf
    demand == 0 and stock == 0 -> 0
"""

import math
from typing import Optional
import structlog

from config.replenishment import ReplenishmentConfig, get_replenishment_config
from models.inventory import Inventory, PendingOrder, SkuMetric, SkuStatus
from utils.inventory_utils import pending_springs

logger = structlog.get_logger(__name__)


def coverage_ratio(stock: float, demand: float) -> float:
    """Stock divided by demand with explicit zero-demand rules."""
    if demand <= 0:
        return math.inf if stock > 0 else 0.0
    return stock / demand


class CoverageService:
    """
    SKU coverage business logic.

    All methods are pure: the caller's inventory is only read.
    """

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config()

    def classify(self, size: str, coverage_weeks: float) -> SkuStatus:
        """Label a SKU by its projected coverage in weeks."""
        if coverage_weeks < self.config.min_coverage_for(size):
            return SkuStatus.CRITICAL
        if coverage_weeks > self.config.overstock_threshold_weeks:
            return SkuStatus.OVERSTOCKED
        return SkuStatus.NORMAL

    def calculate_sku_metrics(
        self,
        inventory: Inventory,
        pending_orders: Optional[list[PendingOrder]] = None,
        order_week_offset: float = 0,
    ) -> list[SkuMetric]:
        """
        Compute coverage metrics for every SKU at the new order's arrival.

        projected = max(0, stock - demand x (offset + lead time) + pending)

        Args:
            inventory: Current warehouse stock
            pending_orders: Containers already on the water
            order_week_offset: Weeks from now until the order is placed

        Returns:
            One SkuMetric per (size, firmness), sizes in declared order
        """
        config = self.config
        offset = max(0.0, order_week_offset or 0)
        horizon_weeks = offset + config.lead_time_weeks
        pending = pending_springs(pending_orders or [], horizon_weeks, config)

        metrics = []
        for size in config.sizes:
            for firmness in config.firmnesses:
                weekly_demand = config.weekly_rate(size) * config.firmness_ratio(size, firmness)
                current = max(0.0, inventory.spring_stock(firmness, size))
                pending_qty = pending.get(firmness, {}).get(size, 0.0)

                projected = max(0.0, current - weekly_demand * horizon_weeks + pending_qty)
                coverage = coverage_ratio(projected, weekly_demand)
                target = weekly_demand * config.min_coverage_for(size)

                metrics.append(SkuMetric(
                    size=size,
                    firmness=firmness,
                    weekly_demand=weekly_demand,
                    current_stock=current,
                    pending_stock=pending_qty,
                    projected_stock=projected,
                    projected_coverage=coverage,
                    status=self.classify(size, coverage),
                    target_stock=target,
                    units_needed=max(0.0, target - projected),
                ))

        logger.debug(
            "sku_metrics_calculated",
            product_line=config.product_line,
            skus=len(metrics),
            critical=sum(1 for m in metrics if m.status == SkuStatus.CRITICAL),
            overstocked=sum(1 for m in metrics if m.status == SkuStatus.OVERSTOCKED),
        )
        return metrics

    def calculate_size_coverage(
        self,
        inventory: Inventory,
        size: str,
        seasonal_multiplier: float = 1.0,
    ) -> float:
        """
        Months of coverage for a whole size.

        Args:
            inventory: Current warehouse stock
            size: Mattress size
            seasonal_multiplier: Demand multiplier for the month in question

        Returns:
            total stock / monthly sales (inf or 0 when there are no sales)
        """
        stock = max(0.0, inventory.total_springs(size))
        return coverage_ratio(stock, self.config.monthly_rate(size) * seasonal_multiplier)
