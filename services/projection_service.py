"""
Annual projection simulator.

Walks a year month by month over one working copy of the inventory:

    1. Arrivals      pending containers with floor(arrival) <= month are merged
    2. Coverage      months of stock per SKU and size at the seasonal rate
    3. Trigger       look ahead on the dominant SKU to time the next order
    4. Order         fixed (repeat / what-if) or built from current stock
    5. Snapshot      copy of the pre-depletion state
    6. Depletion     seasonal monthly sales, consolidated sizes draw on their target

Stockouts are reported in the result, never raised.
"""

import copy
import math
from dataclasses import dataclass
from typing import Optional

import structlog

from config.replenishment import MONTH_NAMES, ReplenishmentConfig, get_replenishment_config
from exceptions import UnsupportedOperationError
from models.inventory import Inventory, PendingOrder
from models.order import ComponentOrder, SpringOrder
from models.projection import (
    AnnualProjection,
    ContainerOrder,
    DrivingSize,
    FixedOrder,
    InventorySnapshot,
    OrderUrgency,
)
from services.component_service import ComponentService
from services.coverage_service import coverage_ratio
from services.spring_order_service import SpringOrderService
from utils.inventory_utils import (
    add_component_order,
    add_spring_order,
    snapshot,
    total_for_size,
    working_components,
    working_springs,
)

logger = structlog.get_logger(__name__)

# Urgency bands in months of coverage of the tightest driving size
URGENT_COVERAGE_MONTHS = 2.0
PLAN_SOON_COVERAGE_MONTHS = 3.0


@dataclass
class _PendingArrival:
    """A simulated container on the water."""
    arrival_month: float
    order: ContainerOrder


class ProjectionService:
    """
    Forward monthly simulation of inventory and container orders.

    The caller's inventory is deep-copied once; the loop mutates only that
    working state and clones it at snapshot boundaries.
    """

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config()
        self.spring_order_service = SpringOrderService(self.config)
        self.component_service = ComponentService(self.config)

    def _require_pallet_line(self) -> None:
        if not self.config.is_pallet_based:
            raise UnsupportedOperationError(self.config.product_line, "Annual projection")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def calculate_annual_projection(
        self,
        inventory: Optional[Inventory],
        current_month: int = 0,
        fixed_order: Optional[FixedOrder] = None,
    ) -> AnnualProjection:
        """
        Project the coming months and place orders where they are needed.

        Args:
            inventory: Starting stock (None -> empty projection)
            current_month: Calendar month index of month 0 (0 = January)
            fixed_order: Reuse this order at every trigger instead of
                building one from current stock

        Returns:
            AnnualProjection with orders, monthly snapshots and stockout flags

        Raises:
            UnsupportedOperationError: Product line ships loose (no pallets)
        """
        self._require_pallet_line()
        if inventory is None:
            logger.warning("projection_skipped_no_inventory")
            return AnnualProjection()

        config = self.config
        current_month = int(current_month) % 12
        springs = working_springs(inventory, config)
        components = working_components(inventory, config)

        orders: list[ContainerOrder] = []
        pending: list[_PendingArrival] = []
        result = AnnualProjection()

        logger.info(
            "projection_started",
            product_line=config.product_line,
            current_month=current_month,
            fixed_order=fixed_order is not None,
        )

        for t in range(config.projection_months):
            month_index = (current_month + t) % 12
            self._receive_arrivals(t, pending, springs, components)

            coverage = self.calculate_coverage(springs, month_index)
            critical = self._critical_sizes(coverage)

            critical_names: list[str] = []
            if self._should_order(t, springs, pending, current_month):
                critical_names = [c.size for c in critical]
                order = self._place_order(t, current_month, len(orders) + 1, springs, components, pending, critical, fixed_order)
                orders.append(order)
                pending.append(_PendingArrival(arrival_month=order.arrival_month, order=order))

            self._record_snapshot(result, t, month_index, springs, components, coverage, critical_names)
            self._deplete(springs, components, month_index)

        return self._finish(result, orders)

    def calculate_repeat_order_projection(
        self,
        inventory: Optional[Inventory],
        fixed_order: FixedOrder,
        current_month: int = 0,
        num_orders: int = 2,
    ) -> AnnualProjection:
        """
        Repeat one order at evenly spaced months.

        Orders are placed at round((i + 1) x 12 / (n + 1)) and arrive after
        the lead time. No trigger logic runs.

        Args:
            inventory: Starting stock (None -> empty projection)
            fixed_order: The order to repeat
            current_month: Calendar month index of month 0
            num_orders: How many times to place it

        Returns:
            AnnualProjection
        """
        self._require_pallet_line()
        if inventory is None or num_orders <= 0:
            return AnnualProjection()

        config = self.config
        current_month = int(current_month) % 12
        springs = working_springs(inventory, config)
        components = working_components(inventory, config)

        spacing = config.projection_months / (num_orders + 1)
        orders: list[ContainerOrder] = []
        pending: list[_PendingArrival] = []

        for i in range(num_orders):
            order_month = int(math.floor((i + 1) * spacing + 0.5))
            arrival_month = order_month + config.lead_time_months
            order = ContainerOrder(
                id=f"order-{i + 1}",
                order_month=order_month,
                order_month_name=MONTH_NAMES[(current_month + order_month) % 12],
                arrival_month=arrival_month,
                arrival_month_name=MONTH_NAMES[int(math.floor(current_month + arrival_month)) % 12],
                pallet_count=fixed_order.pallet_count,
                spring_order=fixed_order.spring_order.model_copy(deep=True),
                component_order=copy.deepcopy(fixed_order.component_order),
                reason="Scheduled repeat order",
                urgency=OrderUrgency.COMFORTABLE,
                driving_sizes=[],
            )
            orders.append(order)
            pending.append(_PendingArrival(arrival_month=arrival_month, order=order))

        result = AnnualProjection()
        for t in range(config.projection_months):
            month_index = (current_month + t) % 12
            self._receive_arrivals(t, pending, springs, components)
            coverage = self.calculate_coverage(springs, month_index)
            self._record_snapshot(result, t, month_index, springs, components, coverage, [])
            self._deplete(springs, components, month_index)

        logger.info("repeat_projection_calculated", num_orders=num_orders, has_stockout=result.has_stockout)
        return self._finish(result, orders)

    def calculate_coverage(self, springs: dict, month_index: int) -> dict[str, float]:
        """
        Months of coverage at the seasonal rate.

        Keys are "Size_firmness" per SKU and "Size" per size.
        """
        config = self.config
        multiplier = config.seasonal_multiplier(month_index)
        coverage = {}
        for size in config.sizes:
            monthly = config.monthly_rate(size) * multiplier
            for firmness in config.firmnesses:
                stock = springs.get(firmness, {}).get(size, 0.0)
                coverage[f"{size}_{firmness}"] = coverage_ratio(stock, monthly * config.firmness_ratio(size, firmness))
            coverage[size] = coverage_ratio(total_for_size(springs, size), monthly)
        return coverage

    # ------------------------------------------------------------------
    # Trigger
    # ------------------------------------------------------------------

    def _dominant_units(self, springs: dict) -> float:
        return springs.get(self.config.dominant_firmness, {}).get(self.config.dominant_size, 0.0)

    def _dominant_monthly(self, month_index: Optional[int] = None) -> float:
        config = self.config
        rate = config.monthly_rate(config.dominant_size) * config.firmness_ratio(config.dominant_size, config.dominant_firmness)
        if month_index is not None:
            rate *= config.seasonal_multiplier(month_index)
        return rate

    def find_target_crossing(
        self,
        units: float,
        start: float,
        pending: list[_PendingArrival],
        current_month: int = 0,
    ) -> Optional[float]:
        """
        First time the dominant SKU falls to the trigger target.

        Steps forward at lookahead_step_months, depleting at the seasonal
        rate of the month in progress and crediting pending arrivals by the
        dominant-SKU springs they carry.

        Returns:
            Month offset of the crossing, or None inside the horizon
        """
        config = self.config
        target = config.trigger_target_units
        end = start + config.lookahead_horizon_months
        arrivals = sorted(
            (p.arrival_month, p.order.spring_order.units_for(config.dominant_firmness, config.dominant_size))
            for p in pending
        )

        time = float(start)
        index = 0
        while index < len(arrivals) and arrivals[index][0] < time:
            index += 1

        while time < end:
            if units <= target:
                return time

            next_time = time + config.lookahead_step_months
            arriving = 0.0
            if index < len(arrivals) and arrivals[index][0] <= next_time:
                next_time = arrivals[index][0]
                arriving = arrivals[index][1]
                index += 1

            rate = self._dominant_monthly(current_month + int(math.floor(time)))
            units = max(0.0, units - rate * (next_time - time)) + arriving
            time = next_time

        return None

    def _should_order(
        self,
        t: int,
        springs: dict,
        pending: list[_PendingArrival],
        current_month: int,
    ) -> bool:
        config = self.config
        if len(pending) >= config.max_open_containers:
            return False

        units = self._dominant_units(springs)
        if units < config.emergency_floor_units and not pending:
            logger.debug("projection_bootstrap_trigger", month=t, dominant_units=round(units, 1))
            return True

        target_time = self.find_target_crossing(units, t, pending, current_month)
        if target_time is None:
            return False

        ideal_order_time = target_time - config.lead_time_months
        on_time = abs(t - ideal_order_time) <= config.trigger_tolerance_months
        covered = any(
            abs(p.arrival_month - target_time) < config.arrival_coverage_window_months
            for p in pending
        )

        logger.debug(
            "projection_trigger_checked",
            month=t,
            dominant_units=round(units, 1),
            target_time=round(target_time, 2),
            ideal_order_time=round(ideal_order_time, 2),
            covered=covered,
        )
        return on_time and not covered

    def _critical_sizes(self, coverage: dict[str, float]) -> list[DrivingSize]:
        """Sizes under their critical band, plus the dominant size, tightest first."""
        config = self.config
        critical = []
        for size in config.sizes:
            threshold = (
                config.critical_coverage_months_high_volume
                if size in config.high_volume_sizes
                else config.critical_coverage_months_small
            )
            if coverage.get(size, 0.0) < threshold or size == config.dominant_size:
                critical.append(DrivingSize(size=size, coverage=coverage.get(size, 0.0)))
        return sorted(critical, key=lambda c: c.coverage)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def _place_order(
        self,
        t: int,
        current_month: int,
        sequence: int,
        springs: dict,
        components: dict,
        pending: list[_PendingArrival],
        critical: list[DrivingSize],
        fixed_order: Optional[FixedOrder],
    ) -> ContainerOrder:
        config = self.config

        if fixed_order is not None:
            pallet_count = fixed_order.pallet_count
            spring_order = fixed_order.spring_order.model_copy(deep=True)
            component_order = copy.deepcopy(fixed_order.component_order)
        else:
            pallet_count = self.determine_pallet_count(springs, critical)
            spring_order, component_order = self._dynamic_order(t, pallet_count, springs, components, pending)
            pallet_count = spring_order.metadata.total_pallets

        arrival_month = t + config.lead_time_months
        order = ContainerOrder(
            id=f"order-{sequence}",
            order_month=t,
            order_month_name=MONTH_NAMES[(current_month + t) % 12],
            arrival_month=arrival_month,
            arrival_month_name=MONTH_NAMES[int(math.floor(current_month + arrival_month)) % 12],
            pallet_count=pallet_count,
            spring_order=spring_order,
            component_order=component_order,
            reason=self.order_reason(critical),
            urgency=self.order_urgency(critical),
            driving_sizes=[c.size for c in critical],
        )

        logger.info(
            "projection_order_triggered",
            order_id=order.id,
            month=t,
            arrival_month=arrival_month,
            pallet_count=pallet_count,
            urgency=order.urgency.value,
        )
        return order

    def _dynamic_order(
        self,
        t: int,
        pallet_count: int,
        springs: dict,
        components: dict,
        pending: list[_PendingArrival],
    ) -> tuple[SpringOrder, ComponentOrder]:
        """Build an order from current working stock."""
        weeks_per_month = self.config.weeks_per_month
        pending_orders = [
            PendingOrder(
                arrival_week_index=(p.arrival_month - t) * weeks_per_month,
                springs={f: {s: float(q) for s, q in by_size.items()} for f, by_size in p.order.spring_order.springs.items()},
            )
            for p in pending
        ]
        current = Inventory(springs=springs, components=components)
        spring_order = self.spring_order_service.calculate_spring_order(pallet_count, current, pending_orders, 0)
        component_order = self.component_service.calculate_component_order(spring_order, current)
        return spring_order, component_order

    def determine_pallet_count(self, springs: dict, critical: list[DrivingSize]) -> int:
        """
        Container size for a dynamic order.

        Dominant size: enough pallets to hold the dominant SKU at its target
        on arrival. Other high-volume sizes: enough for the secondary
        coverage target. One extra pallet per small size under its critical
        band. Clamped to the container limits.
        """
        config = self.config
        lead = config.lead_time_months
        pallets = 0

        ratio = config.firmness_ratio(config.dominant_size, config.dominant_firmness)
        projected = self._dominant_units(springs) - self._dominant_monthly() * lead
        need = max(0.0, config.dominant_target_units_at_arrival - projected)
        if ratio > 0:
            pallets += config.pallets_for_units(need / ratio)

        for size in config.high_volume_sizes:
            if size == config.dominant_size:
                continue
            monthly = config.monthly_rate(size)
            projected = total_for_size(springs, size) - monthly * lead
            target = monthly * config.secondary_target_coverage_months
            pallets += config.pallets_for_units(max(0.0, target - projected))

        pallets += sum(
            1 for c in critical
            if c.size not in config.high_volume_sizes and c.coverage < config.critical_coverage_months_small
        )
        return max(config.min_pallets, min(config.max_pallets, pallets))

    @staticmethod
    def order_reason(critical: list[DrivingSize]) -> str:
        if not critical:
            return "Routine restocking"
        names = [c.size for c in critical[:2]]
        if len(critical) == 1:
            return f"{names[0]} reaching critical levels"
        if len(critical) == 2:
            return f"{names[0]} and {names[1]} reaching critical levels"
        return f"{names[0]}, {names[1]}, and {len(critical) - 2} other sizes critical"

    def order_urgency(self, critical: list[DrivingSize]) -> OrderUrgency:
        """
        urgent:      tightest driving size under 2 months, or a high-volume
                     size under its critical band
        plan_soon:   tightest under 3 months
        comfortable: otherwise
        """
        config = self.config
        if not critical:
            return OrderUrgency.COMFORTABLE

        min_coverage = min(c.coverage for c in critical)
        high_volume_critical = any(
            c.size in config.high_volume_sizes and c.coverage < config.critical_coverage_months_high_volume
            for c in critical
        )
        if min_coverage < URGENT_COVERAGE_MONTHS or high_volume_critical:
            return OrderUrgency.URGENT
        if min_coverage < PLAN_SOON_COVERAGE_MONTHS:
            return OrderUrgency.PLAN_SOON
        return OrderUrgency.COMFORTABLE

    # ------------------------------------------------------------------
    # Working state
    # ------------------------------------------------------------------

    def _receive_arrivals(
        self,
        t: int,
        pending: list[_PendingArrival],
        springs: dict,
        components: dict,
    ) -> None:
        arrived = [p for p in pending if math.floor(p.arrival_month) <= t]
        for arrival in arrived:
            add_spring_order(springs, arrival.order.spring_order)
            add_component_order(components, arrival.order.component_order)
            pending.remove(arrival)
            logger.debug("projection_order_arrived", order_id=arrival.order.id, month=t)

    def _deplete(self, springs: dict, components: dict, month_index: int) -> None:
        """One month of seasonal sales, in place."""
        config = self.config
        multiplier = config.seasonal_multiplier(month_index)

        for size in config.sizes:
            monthly = config.monthly_rate(size) * multiplier

            for firmness in config.firmnesses:
                by_size = springs.setdefault(firmness, {})
                usage = monthly * config.firmness_ratio(size, firmness)
                by_size[size] = max(0.0, by_size.get(size, 0.0) - usage)

            for comp_id, by_size in components.items():
                comp = config.component(comp_id)
                usage = monthly * (comp.multiplier if comp else 1.0)
                target = config.consolidation_target(comp_id, size)
                if target is not None:
                    by_size[target] = max(0.0, by_size.get(target, 0.0) - usage)
                    by_size[size] = 0.0
                else:
                    by_size[size] = max(0.0, by_size.get(size, 0.0) - usage)

    def _record_snapshot(
        self,
        result: AnnualProjection,
        t: int,
        month_index: int,
        springs: dict,
        components: dict,
        coverage: dict[str, float],
        critical_sizes: list[str],
    ) -> None:
        stockout_sizes = [size for size in self.config.sizes if total_for_size(springs, size) <= 0]
        if stockout_sizes:
            result.has_stockout = True
            result.stockout_months.append(t)

        result.snapshots.append(InventorySnapshot(
            month=t,
            month_name=MONTH_NAMES[month_index],
            inventory=snapshot(springs, components),
            coverage=coverage,
            critical_sizes=critical_sizes,
            stockout_sizes=stockout_sizes,
        ))

    def _finish(self, result: AnnualProjection, orders: list[ContainerOrder]) -> AnnualProjection:
        result.orders = orders
        result.total_containers = len(orders)
        result.total_pallets = sum(o.pallet_count for o in orders)
        result.total_units = sum(sum(p.total for p in o.spring_order.pallets) for o in orders)

        logger.info(
            "projection_calculated",
            total_containers=result.total_containers,
            total_pallets=result.total_pallets,
            has_stockout=result.has_stockout,
            stockout_months=result.stockout_months,
        )
        return result
