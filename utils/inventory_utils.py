"""
Inventory helpers for nested firmness -> size -> quantity maps.

Inputs may be sparse (missing firmnesses or sizes); every reader treats a
missing entry as zero. Writers in this module only ever touch the working
dicts they are handed, never a caller's Inventory.
"""

import copy

from config.replenishment import ReplenishmentConfig
from models.inventory import Inventory, PendingOrder
from models.order import SpringOrder, ComponentOrder


def empty_springs(config: ReplenishmentConfig) -> dict[str, dict[str, float]]:
    """Zeroed firmness -> size map covering every SKU."""
    return {firmness: {size: 0.0 for size in config.sizes} for firmness in config.firmnesses}


def empty_components(config: ReplenishmentConfig) -> dict[str, dict[str, float]]:
    """Zeroed component -> size map covering every component."""
    return {comp.id: {size: 0.0 for size in config.sizes} for comp in config.components}


def empty_inventory(config: ReplenishmentConfig) -> Inventory:
    return Inventory(springs=empty_springs(config), components=empty_components(config))


def working_springs(inventory: Inventory, config: ReplenishmentConfig) -> dict[str, dict[str, float]]:
    """
    Dense deep copy of spring stock.

    Negative quantities are clamped to zero.
    """
    springs = empty_springs(config)
    for firmness, by_size in (inventory.springs or {}).items():
        target = springs.setdefault(firmness, {})
        for size, qty in (by_size or {}).items():
            target[size] = max(0.0, float(qty or 0))
    return springs


def working_components(inventory: Inventory, config: ReplenishmentConfig) -> dict[str, dict[str, float]]:
    """Dense deep copy of component stock (negatives clamped to zero)."""
    components = empty_components(config)
    for comp_id, by_size in (inventory.components or {}).items():
        target = components.setdefault(comp_id, {})
        for size, qty in (by_size or {}).items():
            target[size] = max(0.0, float(qty or 0))
    return components


def total_for_size(springs: dict[str, dict[str, float]], size: str) -> float:
    """Stock for a size summed over firmnesses."""
    return sum(by_size.get(size, 0.0) for by_size in springs.values())


def add_spring_order(springs: dict[str, dict[str, float]], spring_order: SpringOrder) -> None:
    """Merge an arrived spring order into working stock, pallet by pallet."""
    for pallet in spring_order.pallets:
        for firmness, qty in pallet.firmness_breakdown.items():
            by_size = springs.setdefault(firmness, {})
            by_size[pallet.size] = by_size.get(pallet.size, 0.0) + qty


def add_component_order(components: dict[str, dict[str, float]], component_order: ComponentOrder) -> None:
    """Merge an arrived component order into working stock."""
    for comp_id, by_size in component_order.items():
        target = components.setdefault(comp_id, {})
        for size, qty in by_size.items():
            target[size] = target.get(size, 0.0) + qty


def pending_springs(
    pending_orders: list[PendingOrder],
    cutoff_week: float,
    config: ReplenishmentConfig,
) -> dict[str, dict[str, float]]:
    """
    Springs from pending orders that land before a new order would.

    Only orders with 0 <= arrival_week_index <= cutoff_week count, so a
    container arriving after the new one is never double-counted.
    Per-size quantities are split by the size's firmness distribution.

    Args:
        pending_orders: Containers already ordered
        cutoff_week: Week index at which the new order arrives
        config: Business configuration

    Returns:
        firmness -> size -> pending quantity
    """
    pending = empty_springs(config)

    for order in pending_orders or []:
        if order.arrival_week_index < 0 or order.arrival_week_index > cutoff_week:
            continue

        for firmness, by_size in (order.springs or {}).items():
            target = pending.setdefault(firmness, {})
            for size, qty in by_size.items():
                target[size] = target.get(size, 0.0) + max(0.0, qty)

        for size, qty in (order.springs_by_size or {}).items():
            for firmness in config.firmnesses:
                pending[firmness][size] = (
                    pending[firmness].get(size, 0.0)
                    + max(0.0, qty) * config.firmness_ratio(size, firmness)
                )

    return pending


def snapshot(springs: dict, components: dict) -> Inventory:
    """Detached copy of working state."""
    return Inventory(springs=copy.deepcopy(springs), components=copy.deepcopy(components))
