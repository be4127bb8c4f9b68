"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest

from config.replenishment import ReplenishmentConfig, spring_config, latex_config
from models.inventory import Inventory
from tests.factories import InventoryFactory


# ===================
# CONFIGURATION
# ===================

@pytest.fixture
def config() -> ReplenishmentConfig:
    """Default spring product line (15 SKUs)."""
    return spring_config()


@pytest.fixture
def latex() -> ReplenishmentConfig:
    """Latex product line (6 SKUs, no components)."""
    return latex_config()


# ===================
# INVENTORY
# ===================

@pytest.fixture
def empty_inventory(config) -> Inventory:
    """Zero stock for every SKU and component."""
    return InventoryFactory.empty(config)


@pytest.fixture
def healthy_inventory(config) -> Inventory:
    """Three months of stock everywhere, components on equal runway."""
    return InventoryFactory.with_coverage(config, months=3)


# ===================
# API CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
