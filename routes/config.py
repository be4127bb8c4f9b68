"""
Config API routes.

Exposes the business configuration for frontend and debugging.
"""
from typing import Optional
from fastapi import APIRouter, Query

from config import ReplenishmentConfig, get_replenishment_config
from config.replenishment import PRODUCT_LINES
from routes.orders import handle_error

router = APIRouter()


@router.get("", response_model=ReplenishmentConfig)
async def get_config(
    product_line: Optional[str] = Query(None, description="springs or latex (defaults to settings)"),
):
    """Get the active replenishment configuration."""
    try:
        return get_replenishment_config(product_line)
    except Exception as e:
        return handle_error(e)


@router.get("/product-lines")
async def list_product_lines():
    """List built-in product lines."""
    return {"product_lines": list(PRODUCT_LINES)}
