"""
Component order service.

Components are ordered so their stock runs out at the same time as the
springs they go with ("equal runway"):

    target = ceil((spring stock + springs ordered) x multiplier)
    order  = max(0, target - component stock)

Then exclusions zero components a size never uses, and consolidations
move small-size orders onto the size they are cut from.

Lot-size rounding for supplier export is a separate step
(optimize_component_order) and never feeds back into the order itself.
"""

import math
from typing import Optional
import structlog

from config.replenishment import ReplenishmentConfig, get_replenishment_config
from models.inventory import Inventory
from models.order import ComponentOrder, ExportFormat, SpringOrder

logger = structlog.get_logger(__name__)


class ComponentService:
    """Derives component orders from spring orders."""

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config()

    def empty_order(self) -> ComponentOrder:
        return {comp.id: {size: 0 for size in self.config.sizes} for comp in self.config.components}

    def calculate_component_order(self, spring_order: Optional[SpringOrder], inventory: Inventory) -> ComponentOrder:
        """
        Component quantities that keep pace with a spring order.

        Args:
            spring_order: Springs being ordered (None -> empty order)
            inventory: Current spring and component stock

        Returns:
            component_id -> size -> quantity
        """
        config = self.config
        order = self.empty_order()
        if spring_order is None:
            return order

        for comp in config.components:
            for size in config.sizes:
                springs_after = max(0.0, inventory.total_springs(size)) + spring_order.total_for_size(size)
                target = math.ceil(springs_after * comp.multiplier)
                on_hand = max(0.0, inventory.component_stock(comp.id, size))
                order[comp.id][size] = max(0, int(math.ceil(target - on_hand)))

        self._apply_exclusions(order)
        self._apply_consolidations(order)

        logger.info(
            "component_order_calculated",
            product_line=config.product_line,
            total_units=sum(sum(by_size.values()) for by_size in order.values()),
        )
        return order

    def _apply_exclusions(self, order: ComponentOrder) -> None:
        for comp_id, sizes in self.config.component_exclusions.items():
            if comp_id not in order:
                continue
            for size in sizes:
                if size in order[comp_id]:
                    order[comp_id][size] = 0

    def _apply_consolidations(self, order: ComponentOrder) -> None:
        for rule in self.config.consolidations:
            by_size = order.get(rule.component_id)
            if by_size is None:
                continue
            moved = sum(by_size.get(size, 0) for size in rule.source_sizes)
            by_size[rule.target_size] = by_size.get(rule.target_size, 0) + moved
            for size in rule.source_sizes:
                by_size[size] = 0

    def optimize_component_order(
        self,
        component_order: ComponentOrder,
        export_format: ExportFormat = ExportFormat.OPTIMIZED,
    ) -> ComponentOrder:
        """
        Round a component order to supplier lot sizes.

        exact:     returned unchanged (as a copy)
        optimized: each non-zero quantity rounded up to its lot size; when
                   the round-up adds no more than the buffer threshold an
                   extra lot_buffer_units is added. Paired components are
                   then lifted to a common quantity.

        Args:
            component_order: Exact component order
            export_format: "exact" or "optimized"

        Returns:
            New component order
        """
        config = self.config
        if ExportFormat(export_format) == ExportFormat.EXACT:
            return {comp_id: dict(by_size) for comp_id, by_size in component_order.items()}

        optimized: ComponentOrder = {}
        for comp_id, by_size in component_order.items():
            comp = config.component(comp_id)
            lot_size = comp.lot_size if comp else 1
            threshold = (
                config.large_lot_buffer_threshold
                if lot_size == config.large_lot_size
                else config.small_lot_buffer_threshold
            )
            optimized[comp_id] = {}
            for size, qty in by_size.items():
                if qty <= 0:
                    optimized[comp_id][size] = 0
                    continue
                rounded = math.ceil(qty / lot_size) * lot_size
                if rounded - qty <= threshold:
                    rounded += config.lot_buffer_units
                optimized[comp_id][size] = int(rounded)

        self._equalize_pairs(optimized)
        return optimized

    def _equalize_pairs(self, order: ComponentOrder) -> None:
        """Lift paired components to the same quantity, a multiple of every lot size."""
        config = self.config
        for pair in config.paired_components:
            members = [comp_id for comp_id in pair if comp_id in order]
            if len(members) < 2:
                continue
            step = math.lcm(*[(config.component(c).lot_size if config.component(c) else 1) for c in members])
            sizes = {size for comp_id in members for size in order[comp_id]}
            for size in sizes:
                peak = max(order[comp_id].get(size, 0) for comp_id in members)
                if peak <= 0:
                    continue
                equal = math.ceil(peak / step) * step
                for comp_id in members:
                    order[comp_id][size] = equal
