"""
Unit tests for OrderCalendarService.

Tests cover per-month size projections, the order threshold, urgency
bands, reason text and the next-order pick.
"""

import pytest

from models.projection import OrderUrgency, SizeProjection
from services.order_calendar_service import OrderCalendarService
from tests.factories import InventoryFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def service(config):
    return OrderCalendarService(config)


def _projection(size: str, coverage: float = 1.0) -> SizeProjection:
    return SizeProjection(
        size=size,
        current_stock=10,
        projected_stock=10,
        coverage=coverage,
        monthly_sales_rate=10,
    )


# ===================
# CALENDAR
# ===================

class TestCalculateOrderTimingCalendar:
    """Tests for calculate_order_timing_calendar."""

    def test_empty_warehouse_every_month(self, service, empty_inventory):
        calendar = service.calculate_order_timing_calendar(empty_inventory)

        assert [r.month_offset for r in calendar.recommendations] == list(range(13))
        first = calendar.recommendations[0]
        assert first.month_name == "January"
        assert first.urgency == OrderUrgency.URGENT
        assert first.days_until == 0
        assert len(first.critical_sizes) == 5
        assert first.reason == "King, Queen, and 3 other sizes will reach critical levels"

    def test_next_order_skips_this_month(self, service, empty_inventory):
        calendar = service.calculate_order_timing_calendar(empty_inventory)

        assert calendar.next_order.month_offset == 1
        assert calendar.next_order.days_until == 30

    def test_deep_stock_first_flag_in_september(self, service, config):
        """
        Twelve months of stock: 3.6 months left in August at the 1.25 peak,
        2.95 in September, under the 3.5 month threshold.
        """
        inventory = InventoryFactory.with_coverage(config, months=12)

        calendar = service.calculate_order_timing_calendar(inventory)

        assert [r.month_offset for r in calendar.recommendations] == [8, 9, 10, 11, 12]
        assert calendar.next_order.month_name == "September"
        assert calendar.next_order.urgency == OrderUrgency.PLAN_SOON
        assert calendar.next_order.days_until == 240

    def test_no_recommendations(self, service, config):
        inventory = InventoryFactory.with_coverage(config, months=40)

        calendar = service.calculate_order_timing_calendar(inventory)

        assert calendar.recommendations == []
        assert calendar.next_order is None

    def test_month_names_wrap(self, service, empty_inventory):
        calendar = service.calculate_order_timing_calendar(empty_inventory, current_month=10)

        assert calendar.current_month == 10
        assert [r.month_name for r in calendar.recommendations[:3]] == ["November", "December", "January"]

    def test_all_sizes_listed(self, service, config, empty_inventory):
        calendar = service.calculate_order_timing_calendar(empty_inventory)

        assert [p.size for p in calendar.recommendations[0].all_sizes] == config.sizes

    def test_does_not_mutate_inventory(self, service, healthy_inventory):
        before = healthy_inventory.model_dump()
        service.calculate_order_timing_calendar(healthy_inventory)

        assert healthy_inventory.model_dump() == before


# ===================
# PROJECTIONS
# ===================

class TestProjectSizes:
    """Tests for project_sizes."""

    def test_depletes_at_seasonal_rate(self, service, config):
        inventory = InventoryFactory.with_coverage(config, months=12)

        # Jan-Jun multipliers sum to 6.25, July rate is 1.25 x 30
        king = service.project_sizes(inventory, 0, 6)[0]

        assert king.size == "King"
        assert king.current_stock == pytest.approx(360, abs=0.05)
        assert king.projected_stock == pytest.approx(360 - 30 * 6.25, abs=0.05)
        assert king.monthly_sales_rate == pytest.approx(37.5)
        assert king.coverage == pytest.approx(4.6, abs=0.01)

    def test_never_negative(self, service, empty_inventory):
        projections = service.project_sizes(empty_inventory, 0, 12)

        assert all(p.projected_stock == 0 for p in projections)
        assert all(p.coverage == 0 for p in projections)


# ===================
# URGENCY / REASON
# ===================

class TestCalendarUrgency:
    """Tests for calendar_urgency."""

    @pytest.mark.parametrize("size,offset,expected", [
        ("Queen", 0, OrderUrgency.URGENT),
        ("Queen", 1, OrderUrgency.URGENT),
        ("Queen", 5, OrderUrgency.PLAN_SOON),
        ("Double", 0, OrderUrgency.PLAN_SOON),
        ("Double", 3, OrderUrgency.PLAN_SOON),
        ("Double", 4, OrderUrgency.COMFORTABLE),
    ])
    def test_bands(self, service, size, offset, expected):
        assert service.calendar_urgency([_projection(size)], offset) == expected


class TestCalendarReason:
    """Tests for calendar_reason (2.5 month lead time)."""

    def test_one_size(self, service):
        reason = service.calendar_reason([_projection("Queen")], 0)

        assert reason == "Queen will reach critical levels in ~3 months (after lead time)"

    def test_two_sizes(self, service):
        reason = service.calendar_reason([_projection("Double"), _projection("Single")], 1)

        assert reason == "Double and Single will reach critical levels in ~4 months"

    def test_three_sizes(self, service):
        critical = [_projection(s) for s in ("Double", "Single", "King")]

        assert service.calendar_reason(critical, 2) == "Double, Single, and 1 other size will reach critical levels"
