"""
Order timing calendar.

Read-only outlook over the next twelve months: each size is depleted at
the seasonal rate with no orders placed, and every month in which a size
drops under the order threshold becomes a recommendation.
"""

import math
from typing import Optional
import structlog

from config.replenishment import MONTH_NAMES, ReplenishmentConfig, get_replenishment_config
from models.inventory import Inventory
from models.projection import OrderRecommendation, OrderTimingCalendar, OrderUrgency, SizeProjection
from services.coverage_service import coverage_ratio

logger = structlog.get_logger(__name__)

# Days per month offset in recommendations
DAYS_PER_MONTH = 30


class OrderCalendarService:
    """When orders will be needed if nothing is ordered."""

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config()

    def calculate_order_timing_calendar(self, inventory: Inventory, current_month: int = 0) -> OrderTimingCalendar:
        """
        Project every size for month offsets 0..projection_months.

        Args:
            inventory: Current warehouse stock
            current_month: Calendar month index of offset 0 (0 = January)

        Returns:
            OrderTimingCalendar; next_order is the first recommendation after
            this month, else this month's, else None
        """
        config = self.config
        current_month = int(current_month) % 12
        recommendations = []

        for offset in range(config.projection_months + 1):
            projections = self.project_sizes(inventory, current_month, offset)
            critical = sorted(
                (p for p in projections if p.coverage < config.order_trigger_threshold_months),
                key=lambda p: p.coverage,
            )
            if not critical:
                continue

            recommendations.append(OrderRecommendation(
                month_offset=offset,
                month_name=MONTH_NAMES[(current_month + offset) % 12],
                urgency=self.calendar_urgency(critical, offset),
                critical_sizes=critical,
                all_sizes=projections,
                days_until=offset * DAYS_PER_MONTH,
                reason=self.calendar_reason(critical, offset),
            ))

        next_order = next((r for r in recommendations if r.month_offset > 0), None)
        if next_order is None and recommendations:
            next_order = recommendations[0]

        logger.info(
            "order_calendar_calculated",
            product_line=config.product_line,
            recommendations=len(recommendations),
            next_order_month=next_order.month_offset if next_order else None,
        )
        return OrderTimingCalendar(
            recommendations=recommendations,
            next_order=next_order,
            current_month=current_month,
        )

    def project_sizes(self, inventory: Inventory, current_month: int, offset: int) -> list[SizeProjection]:
        """Stock and coverage per size after `offset` months of seasonal sales.

        Sizes that do not sell are left out; they never need an order.
        """
        config = self.config
        projections = []
        for size in config.sizes:
            if config.monthly_rate(size) <= 0:
                continue
            current = max(0.0, inventory.total_springs(size))
            projected = current
            for i in range(offset):
                projected -= config.monthly_rate(size) * config.seasonal_multiplier(current_month + i)

            rate = config.monthly_rate(size) * config.seasonal_multiplier(current_month + offset)
            projected = max(0.0, projected)
            # A zero-season month falls back to the base rate to keep coverage finite
            coverage = coverage_ratio(projected, rate if rate > 0 else config.monthly_rate(size))
            projections.append(SizeProjection(
                size=size,
                current_stock=current,
                projected_stock=projected,
                coverage=coverage,
                monthly_sales_rate=rate,
            ))
        return projections

    def calendar_urgency(self, critical: list[SizeProjection], offset: int) -> OrderUrgency:
        """
        urgent:      a high-volume size is short within a month
        plan_soon:   within three months, or a high-volume size is short
        comfortable: otherwise
        """
        high_volume = any(p.size in self.config.high_volume_sizes for p in critical)
        if offset <= 1 and high_volume:
            return OrderUrgency.URGENT
        if offset <= 3 or high_volume:
            return OrderUrgency.PLAN_SOON
        return OrderUrgency.COMFORTABLE

    def calendar_reason(self, critical: list[SizeProjection], offset: int) -> str:
        names = [p.size for p in critical]
        months = int(math.floor(offset + self.config.lead_time_months + 0.5))
        if len(names) == 1:
            return f"{names[0]} will reach critical levels in ~{months} months (after lead time)"
        if len(names) == 2:
            return f"{names[0]} and {names[1]} will reach critical levels in ~{months} months"
        others = len(names) - 2
        return f"{names[0]}, {names[1]}, and {others} other size{'s' if others > 1 else ''} will reach critical levels"
