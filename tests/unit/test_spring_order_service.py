"""
Unit tests for SpringOrderService.

Tests cover order composition, metadata, the pallet invariants and a
deterministic sweep over random inventories for both strategies.
"""

import pytest

from config.replenishment import AllocationStrategy, spring_config
from exceptions import UnsupportedOperationError
from models.order import PalletType
from services.spring_order_service import SpringOrderService
from tests.factories import InventoryFactory, PendingOrderFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def service(config):
    return SpringOrderService(config)


def assert_order_invariants(order, capacity=30):
    """Pallet totals, pallet count and aggregate must all agree."""
    assert all(p.total == capacity for p in order.pallets)
    assert all(sum(p.firmness_breakdown.values()) == capacity for p in order.pallets)
    assert sum(p.total for p in order.pallets) == order.metadata.total_pallets * capacity

    aggregate = sum(sum(by_size.values()) for by_size in order.springs.values())
    assert aggregate == sum(p.total for p in order.pallets)

    for firmness, by_size in order.springs.items():
        for size, qty in by_size.items():
            packed = sum(p.firmness_breakdown.get(firmness, 0) for p in order.pallets if p.size == size)
            assert qty == packed

    assert [p.id for p in order.pallets] == list(range(1, len(order.pallets) + 1))


# ===================
# SCENARIOS
# ===================

class TestSpringOrderScenarios:
    """End-to-end spring order scenarios."""

    def test_empty_inventory_eight_pallets(self, service, empty_inventory):
        """Empty warehouse, 8-pallet container: 8 pallets, 240 springs, critical SKUs."""
        order = service.calculate_spring_order(8, empty_inventory)

        assert len(order.pallets) == 8
        assert order.metadata.total_pallets == 8
        assert order.metadata.total_units == 240
        assert order.metadata.critical_skus >= 1
        assert_order_invariants(order)

    def test_overstocked_size_gets_no_pallets(self, config, service):
        inventory = InventoryFactory.with_coverage(config, months={"King": 100, "Queen": 0, "Double": 0, "King Single": 0, "Single": 0})

        order = service.calculate_spring_order(10, inventory)

        assert order.metadata.pallets_by_size["King"] == 0
        assert order.metadata.pallets_by_size["Queen"] > 5
        assert_order_invariants(order)

    def test_single_pallet_to_critical_size_is_critical(self, service, empty_inventory):
        """Double gets exactly one pallet from an empty 8-pallet order."""
        order = service.calculate_spring_order(8, empty_inventory)
        double = [p for p in order.pallets if p.size == "Double"]

        assert len(double) == 1
        assert double[0].type == PalletType.CRITICAL
        assert order.metadata.critical_pallets == 1

    def test_pending_order_reduces_need(self, service, empty_inventory):
        without = service.calculate_spring_order(8, empty_inventory)
        pending = [PendingOrderFactory.create(arrival_week_index=4, springs_by_size={"Queen": 600})]
        with_pending = service.calculate_spring_order(8, empty_inventory, pending)

        assert with_pending.metadata.pallets_by_size["Queen"] < without.metadata.pallets_by_size["Queen"]

    def test_strategy_override(self, service, empty_inventory):
        order = service.calculate_spring_order(8, empty_inventory, strategy=AllocationStrategy.DOMINANT_SKU)

        assert order.metadata.strategy == "dominant_sku"
        assert order.metadata.pallets_by_size == {"King": 3, "Queen": 5, "Double": 0, "King Single": 0, "Single": 0}

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_count_is_empty_order(self, service, empty_inventory, count):
        order = service.calculate_spring_order(count, empty_inventory)

        assert order.pallets == []
        assert order.metadata.total_units == 0
        assert all(qty == 0 for by_size in order.springs.values() for qty in by_size.values())

    def test_latex_is_rejected(self, latex):
        service = SpringOrderService(latex)

        with pytest.raises(UnsupportedOperationError) as exc:
            service.calculate_spring_order(8, InventoryFactory.empty(latex))

        assert exc.value.code == "OPERATION_NOT_SUPPORTED"


# ===================
# METADATA
# ===================

class TestMetadata:
    """Tests for order metadata."""

    def test_counts_add_up(self, service, empty_inventory):
        meta = service.calculate_spring_order(12, empty_inventory).metadata

        assert meta.pure_pallets + meta.mixed_pallets + meta.critical_pallets == meta.total_pallets
        assert meta.high_volume_pallets + meta.small_size_pallets == meta.total_pallets
        assert sum(meta.pallets_by_size.values()) == meta.total_pallets
        assert meta.requested_pallets == 12
        assert meta.unallocated_pallets == 0
        assert meta.sizes_allocated == [s for s, n in meta.pallets_by_size.items() if n > 0]

    def test_unallocated_pallets_reported(self, config):
        """Everything overstocked: nothing packed, all requested pallets unallocated."""
        service = SpringOrderService(config)
        inventory = InventoryFactory.with_coverage(config, months=100)

        order = service.calculate_spring_order(6, inventory)

        assert order.metadata.total_pallets == 0
        assert order.metadata.unallocated_pallets == 6
        assert order.metadata.overstocked_skus == 15


# ===================
# PROPERTIES
# ===================

class TestProperties:
    """Invariants over many inputs."""

    def test_idempotent(self, service, healthy_inventory):
        first = service.calculate_spring_order(9, healthy_inventory)
        second = service.calculate_spring_order(9, healthy_inventory)

        assert first.model_dump() == second.model_dump()

    def test_does_not_mutate_inventory(self, service, healthy_inventory):
        before = healthy_inventory.model_dump()
        service.calculate_spring_order(8, healthy_inventory)

        assert healthy_inventory.model_dump() == before

    @pytest.mark.parametrize("strategy", list(AllocationStrategy))
    def test_random_inventory_sweep(self, strategy):
        config = spring_config(allocation_strategy=strategy)
        service = SpringOrderService(config)

        for seed in range(60):
            inventory = InventoryFactory.random(config, seed=seed)
            pallet_count = config.min_pallets + seed % (config.max_pallets - config.min_pallets + 1)

            order = service.calculate_spring_order(pallet_count, inventory)

            assert_order_invariants(order)
            assert order.metadata.total_pallets + order.metadata.unallocated_pallets == pallet_count
            if strategy == AllocationStrategy.DOMINANT_SKU:
                assert order.metadata.total_pallets == pallet_count
