"""
Order API routes.

POST /api/orders/skus                     SKU coverage metrics
POST /api/orders/springs                  Spring order for one container
POST /api/orders/components               Component order for a spring order
POST /api/orders                          Spring + component order
POST /api/orders/components/lot-sizes     Lot-size rounding for export
POST /api/orders/latex                    Latex order for one container (equal runout)
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from config import get_replenishment_config
from exceptions import AppError
from models.inventory import SkuMetric
from models.order import (
    ComponentOrder,
    ComponentOrderRequest,
    ExportFormat,
    FullOrder,
    LatexOrder,
    LatexOrderRequest,
    LotSizeRequest,
    SkuMetricsRequest,
    SpringOrder,
    SpringOrderRequest,
)
from services.component_service import ComponentService
from services.coverage_service import CoverageService
from services.latex_order_service import LatexOrderService
from services.spring_order_service import SpringOrderService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/skus", response_model=list[SkuMetric])
def calculate_sku_metrics(data: SkuMetricsRequest):
    """
    Coverage and classification for every SKU at the new order's arrival.
    """
    try:
        config = get_replenishment_config(data.product_line)
        return CoverageService(config).calculate_sku_metrics(
            data.inventory,
            data.pending_orders,
            data.order_week_offset,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/springs", response_model=SpringOrder)
def calculate_spring_order(data: SpringOrderRequest):
    """
    Spring order for a container of 4-12 pallets.

    Every pallet holds exactly the configured number of units.
    """
    logger.info("spring_order_request", pallet_count=data.pallet_count, product_line=data.product_line)
    try:
        config = get_replenishment_config(data.product_line)
        return SpringOrderService(config).calculate_spring_order(
            data.pallet_count,
            data.inventory,
            data.pending_orders,
            data.order_week_offset,
            strategy=data.strategy,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/components", response_model=ComponentOrder)
def calculate_component_order(data: ComponentOrderRequest):
    """Component order that keeps pace with a spring order."""
    try:
        config = get_replenishment_config(data.product_line)
        return ComponentService(config).calculate_component_order(data.spring_order, data.inventory)
    except Exception as e:
        return handle_error(e)


@router.post("/components/lot-sizes", response_model=ComponentOrder)
def optimize_component_order(
    data: LotSizeRequest,
    format: ExportFormat = Query(ExportFormat.OPTIMIZED, description="exact or optimized"),
):
    """Round a component order to supplier lot sizes."""
    try:
        config = get_replenishment_config(data.product_line)
        return ComponentService(config).optimize_component_order(data.component_order, format)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=FullOrder)
def calculate_full_order(data: SpringOrderRequest):
    """Spring order plus its component order."""
    logger.info("full_order_request", pallet_count=data.pallet_count, product_line=data.product_line)
    try:
        config = get_replenishment_config(data.product_line)
        spring_order = SpringOrderService(config).calculate_spring_order(
            data.pallet_count,
            data.inventory,
            data.pending_orders,
            data.order_week_offset,
            strategy=data.strategy,
        )
        component_order = ComponentService(config).calculate_component_order(spring_order, data.inventory)
        return FullOrder(spring_order=spring_order, component_order=component_order)
    except Exception as e:
        return handle_error(e)


@router.post("/latex", response_model=LatexOrder)
def calculate_latex_order(data: LatexOrderRequest):
    """
    Latex order for a 170 or 340 unit container.

    Items ship loose; quantities are set so every SKU runs out in the same week.
    """
    logger.info("latex_order_request", container_capacity=data.container_capacity, product_line=data.product_line)
    try:
        config = get_replenishment_config(data.product_line)
        return LatexOrderService(config).calculate_latex_order(
            data.container_capacity,
            data.inventory,
            data.pending_orders,
            data.order_week_offset,
        )
    except Exception as e:
        return handle_error(e)
