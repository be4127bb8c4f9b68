"""
Unit tests for LatexOrderService.

Tests cover equal-runout allocation, batch rounding, capacity checks
and the rejection of pallet-based product lines.
"""

import pytest

from exceptions import InvalidContainerCapacityError, UnsupportedOperationError
from models.inventory import SkuStatus
from services.latex_order_service import LatexOrderService
from tests.factories import InventoryFactory, SkuMetricFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def service(latex):
    return LatexOrderService(latex)


@pytest.fixture
def empty_latex(latex):
    return InventoryFactory.empty(latex)


# ===================
# ORDER
# ===================

class TestCalculateLatexOrder:
    """Tests for calculate_latex_order."""

    def test_forty_foot_from_empty(self, service, empty_latex):
        """
        Weekly demand 20.125 puts the common runout at week 16.89. Rounding
        to batches gives 345, and the surplus 5 comes off King soft, which
        has the most coverage after the order.
        """
        order = service.calculate_latex_order(340, empty_latex)

        assert order.latex == {
            "firm": {"King": 15, "Queen": 30},
            "medium": {"King": 110, "Queen": 175},
            "soft": {"King": 0, "Queen": 10},
        }
        assert order.metadata.total_items == 340
        assert order.metadata.capacity_used_percent == 100
        assert order.metadata.target_runout_weeks == pytest.approx(340 / 20.125)

    def test_twenty_foot_from_empty(self, service, empty_latex):
        order = service.calculate_latex_order(170, empty_latex)

        assert order.latex == {
            "firm": {"King": 10, "Queen": 15},
            "medium": {"King": 55, "Queen": 85},
            "soft": {"King": 0, "Queen": 5},
        }
        assert order.metadata.total_items == 170

    def test_metadata_totals(self, service, empty_latex):
        meta = service.calculate_latex_order(340, empty_latex).metadata

        assert meta.container_capacity == 340
        assert meta.total_by_size == {"King": 125, "Queen": 215}
        assert meta.total_by_firmness == {"firm": 45, "medium": 285, "soft": 10}
        assert meta.critical_skus == 6
        assert meta.overstocked_skus == 0
        assert meta.algorithm == "equal_runout"

    def test_overstocked_sku_gets_nothing(self, service, empty_latex):
        empty_latex.springs["medium"]["King"] = 1000

        order = service.calculate_latex_order(170, empty_latex)

        assert order.units_for("medium", "King") == 0
        assert order.metadata.total_items == 170
        assert order.metadata.overstocked_skus == 1
        assert all(qty % 5 == 0 for by_size in order.latex.values() for qty in by_size.values())

    def test_sku_metrics_returned(self, service, empty_latex):
        order = service.calculate_latex_order(340, empty_latex)

        assert len(order.sku_metrics) == 6
        assert {m.size for m in order.sku_metrics} == {"King", "Queen"}

    def test_does_not_mutate_inventory(self, service, empty_latex):
        before = empty_latex.model_dump()
        service.calculate_latex_order(340, empty_latex)

        assert empty_latex.model_dump() == before


# ===================
# VALIDATION
# ===================

class TestValidation:
    """Capacity and product line checks."""

    def test_unknown_capacity(self, service, empty_latex):
        with pytest.raises(InvalidContainerCapacityError) as exc:
            service.calculate_latex_order(200, empty_latex)

        assert exc.value.code == "INVALID_CONTAINER_CAPACITY"
        assert exc.value.details["allowed"] == [170, 340]

    def test_pallet_line_rejected(self, config, empty_inventory):
        with pytest.raises(UnsupportedOperationError):
            LatexOrderService(config).calculate_latex_order(340, empty_inventory)


# ===================
# ALLOCATION
# ===================

class TestAllocateEqualRunout:
    """Tests for allocate_equal_runout on hand-built metrics."""

    def test_leftover_goes_to_lowest_coverage(self, service):
        """
        Equal demand, T = 36.5 / 3 = 12.17 weeks. Every SKU rounds down to
        10, and the leftover batch goes to King firm, the one with no stock.
        """
        metrics = [
            SkuMetricFactory.create("King", "firm", weekly_demand=1.0, projected_stock=0),
            SkuMetricFactory.create("King", "medium", weekly_demand=1.0, projected_stock=0.5),
            SkuMetricFactory.create("King", "soft", weekly_demand=1.0, projected_stock=1),
        ]

        allocation, target = service.allocate_equal_runout(35, metrics)

        assert target == pytest.approx(36.5 / 3)
        assert allocation == {("firm", "King"): 15, ("medium", "King"): 10, ("soft", "King"): 10}

    def test_no_demand_allocates_nothing(self, service):
        metrics = [
            SkuMetricFactory.create("King", "soft", weekly_demand=0.0, status=SkuStatus.NORMAL),
        ]

        allocation, target = service.allocate_equal_runout(170, metrics)

        assert allocation == {("soft", "King"): 0}
        assert target == 0.0

    def test_skus_without_demand_are_skipped(self, service):
        metrics = [
            SkuMetricFactory.create("King", "soft", weekly_demand=0.0, status=SkuStatus.NORMAL),
            SkuMetricFactory.create("Queen", "medium", weekly_demand=2.0),
        ]

        allocation, _ = service.allocate_equal_runout(170, metrics)

        assert allocation == {("soft", "King"): 0, ("medium", "Queen"): 170}
