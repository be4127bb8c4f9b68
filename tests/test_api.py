"""
API tests through the FastAPI test client.

Tests cover the system endpoints, configuration lookup, order endpoints
(springs and latex), lot-size export, both projection modes and the
order timing calendar.
"""

import pytest

from tests.factories import InventoryFactory


# =====================
# HELPERS
# =====================

def _inventory_json(config, months=0):
    if months:
        return InventoryFactory.with_coverage(config, months=months).model_dump()
    return InventoryFactory.empty(config).model_dump()


# =====================
# SYSTEM
# =====================

class TestSystemEndpoints:
    """Health and index."""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_lists_endpoints(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["projection"] == "/api/projection"
        assert response.json()["endpoints"]["latex_order"] == "/api/orders/latex"


# =====================
# CONFIG
# =====================

class TestConfigEndpoints:
    """GET /api/config"""

    def test_default_config(self, test_client):
        response = test_client.get("/api/config")

        assert response.status_code == 200
        body = response.json()
        assert body["units_per_pallet"] == 30
        assert body["lead_time_weeks"] == 10

    def test_latex_config(self, test_client):
        response = test_client.get("/api/config", params={"product_line": "latex"})

        assert response.status_code == 200
        assert response.json()["sizes"] == ["King", "Queen"]

    def test_unknown_product_line(self, test_client):
        response = test_client.get("/api/config", params={"product_line": "futons"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_LINE_NOT_FOUND"

    def test_product_lines(self, test_client):
        response = test_client.get("/api/config/product-lines")

        assert response.json() == {"product_lines": ["springs", "latex"]}


# =====================
# ORDERS
# =====================

class TestOrderEndpoints:
    """POST /api/orders/*"""

    def test_sku_metrics(self, test_client, config):
        response = test_client.post("/api/orders/skus", json={"inventory": _inventory_json(config)})

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 15
        assert all(r["status"] == "CRITICAL" for r in rows)

    def test_spring_order(self, test_client, config):
        response = test_client.post(
            "/api/orders/springs",
            json={"inventory": _inventory_json(config), "pallet_count": 8},
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["pallets"]) == 8
        assert all(p["total"] == 30 for p in body["pallets"])
        assert body["metadata"]["total_units"] == 240

    @pytest.mark.parametrize("pallet_count", [3, 13])
    def test_pallet_count_out_of_range(self, test_client, config, pallet_count):
        response = test_client.post(
            "/api/orders/springs",
            json={"inventory": _inventory_json(config), "pallet_count": pallet_count},
        )

        assert response.status_code == 422

    def test_unknown_strategy(self, test_client, config):
        response = test_client.post(
            "/api/orders/springs",
            json={"inventory": _inventory_json(config), "strategy": "biggest_first"},
        )

        assert response.status_code == 422

    def test_spring_order_unknown_product_line(self, test_client, config):
        response = test_client.post(
            "/api/orders/springs",
            json={"inventory": _inventory_json(config), "product_line": "futons"},
        )

        assert response.status_code == 404

    def test_full_order(self, test_client, config):
        response = test_client.post(
            "/api/orders",
            json={"inventory": _inventory_json(config), "pallet_count": 6, "strategy": "dominant_sku"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["spring_order"]["metadata"]["total_pallets"] == 6
        assert body["spring_order"]["metadata"]["strategy"] == "dominant_sku"
        assert set(body["component_order"]) == {c.id for c in config.components}

    def test_component_order(self, test_client, config):
        spring_order = test_client.post(
            "/api/orders/springs",
            json={"inventory": _inventory_json(config)},
        ).json()

        response = test_client.post(
            "/api/orders/components",
            json={"spring_order": spring_order, "inventory": _inventory_json(config)},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["micro_coils"]["Single"] == 0
        assert body["side_panel"]["Single"] == 0


    def test_spring_order_rejects_latex(self, test_client, latex):
        response = test_client.post(
            "/api/orders/springs",
            json={"inventory": _inventory_json(latex), "product_line": "latex"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "OPERATION_NOT_SUPPORTED"


class TestLatexOrderEndpoint:
    """POST /api/orders/latex"""

    def test_forty_foot_container(self, test_client, latex):
        response = test_client.post("/api/orders/latex", json={"inventory": _inventory_json(latex)})

        assert response.status_code == 200
        body = response.json()
        assert body["metadata"]["total_items"] == 340
        assert body["metadata"]["capacity_used_percent"] == 100
        assert body["latex"]["medium"]["Queen"] == 175

    def test_twenty_foot_container(self, test_client, latex):
        response = test_client.post(
            "/api/orders/latex",
            json={"inventory": _inventory_json(latex), "container_capacity": 170},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["total_items"] == 170

    def test_unknown_capacity(self, test_client, latex):
        response = test_client.post(
            "/api/orders/latex",
            json={"inventory": _inventory_json(latex), "container_capacity": 200},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_CONTAINER_CAPACITY"

    def test_spring_line_rejected(self, test_client, config):
        response = test_client.post(
            "/api/orders/latex",
            json={"inventory": _inventory_json(config), "product_line": "springs"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "OPERATION_NOT_SUPPORTED"

class TestLotSizeEndpoint:
    """POST /api/orders/components/lot-sizes"""

    def test_exact_returns_input(self, test_client):
        order = {"felt": {"King": 13}}

        response = test_client.post(
            "/api/orders/components/lot-sizes",
            params={"format": "exact"},
            json={"component_order": order},
        )

        assert response.status_code == 200
        assert response.json() == order

    def test_optimized_rounds_up_to_lot(self, test_client):
        response = test_client.post(
            "/api/orders/components/lot-sizes",
            json={"component_order": {"felt": {"King": 13}}},
        )

        assert response.status_code == 200
        assert response.json()["felt"]["King"] % 10 == 0
        assert response.json()["felt"]["King"] >= 13

    def test_bad_format(self, test_client):
        response = test_client.post(
            "/api/orders/components/lot-sizes",
            params={"format": "rounded"},
            json={"component_order": {}},
        )

        assert response.status_code == 422


# =====================
# PROJECTION
# =====================

class TestProjectionEndpoints:
    """POST /api/projection and /api/projection/repeat"""

    def test_dynamic_projection(self, test_client, config):
        response = test_client.post(
            "/api/projection",
            json={"inventory": _inventory_json(config), "current_month": 3},
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["snapshots"]) == 12
        assert body["snapshots"][0]["month_name"] == "April"
        assert body["orders"][0]["order_month"] == 0
        assert body["has_stockout"] is True

    def test_invalid_month(self, test_client, config):
        response = test_client.post(
            "/api/projection",
            json={"inventory": _inventory_json(config), "current_month": 12},
        )

        assert response.status_code == 422

    def test_repeat_projection(self, test_client, config):
        full = test_client.post("/api/orders", json={"inventory": _inventory_json(config)}).json()
        fixed_order = {
            "spring_order": full["spring_order"],
            "component_order": full["component_order"],
            "pallet_count": 8,
        }

        response = test_client.post(
            "/api/projection/repeat",
            json={"inventory": _inventory_json(config, months=3), "fixed_order": fixed_order, "num_orders": 3},
        )

        assert response.status_code == 200
        body = response.json()
        assert [o["order_month"] for o in body["orders"]] == [3, 6, 9]
        assert body["total_pallets"] == 24

    def test_repeat_requires_fixed_order(self, test_client, config):
        response = test_client.post("/api/projection/repeat", json={"inventory": _inventory_json(config)})

        assert response.status_code == 422

    def test_projection_rejects_latex(self, test_client, latex):
        response = test_client.post(
            "/api/projection",
            json={"inventory": _inventory_json(latex), "product_line": "latex"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "OPERATION_NOT_SUPPORTED"


class TestOrderCalendarEndpoint:
    """POST /api/projection/calendar"""

    def test_empty_warehouse(self, test_client, config):
        response = test_client.post("/api/projection/calendar", json={"inventory": _inventory_json(config)})

        assert response.status_code == 200
        body = response.json()
        assert len(body["recommendations"]) == 13
        assert body["recommendations"][0]["urgency"] == "urgent"
        assert body["next_order"]["month_offset"] == 1

    def test_deep_stock(self, test_client, config):
        response = test_client.post(
            "/api/projection/calendar",
            json={"inventory": _inventory_json(config, months=12), "current_month": 0},
        )

        assert response.status_code == 200
        assert response.json()["next_order"]["month_name"] == "September"

    def test_latex_line(self, test_client, latex):
        response = test_client.post(
            "/api/projection/calendar",
            json={"inventory": _inventory_json(latex), "product_line": "latex"},
        )

        assert response.status_code == 200
        assert [s["size"] for s in response.json()["recommendations"][0]["all_sizes"]] == ["King", "Queen"]
