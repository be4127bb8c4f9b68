"""
Projection API routes.

POST /api/projection            Annual projection (dynamic or fixed-order mode)
POST /api/projection/repeat     Repeat one order at fixed intervals
POST /api/projection/calendar   When orders will be needed if none are placed
"""

from fastapi import APIRouter
import structlog

from config import get_replenishment_config
from models.projection import (
    AnnualProjection,
    OrderCalendarRequest,
    OrderTimingCalendar,
    ProjectionRequest,
    RepeatProjectionRequest,
)
from routes.orders import handle_error
from services.order_calendar_service import OrderCalendarService
from services.projection_service import ProjectionService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/projection", tags=["Projection"])


@router.post("", response_model=AnnualProjection)
def calculate_projection(data: ProjectionRequest):
    """
    Simulate the coming year and place containers to avoid stockouts.

    With fixed_order set, that order is reused whenever a container is due.
    """
    logger.info(
        "projection_request",
        current_month=data.current_month,
        fixed_order=data.fixed_order is not None,
        product_line=data.product_line,
    )
    try:
        config = get_replenishment_config(data.product_line)
        return ProjectionService(config).calculate_annual_projection(
            data.inventory,
            current_month=data.current_month,
            fixed_order=data.fixed_order,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/repeat", response_model=AnnualProjection)
def calculate_repeat_projection(data: RepeatProjectionRequest):
    """Repeat one order num_orders times, evenly spaced over the year."""
    try:
        config = get_replenishment_config(data.product_line)
        return ProjectionService(config).calculate_repeat_order_projection(
            data.inventory,
            data.fixed_order,
            current_month=data.current_month,
            num_orders=data.num_orders,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/calendar", response_model=OrderTimingCalendar)
def calculate_order_calendar(data: OrderCalendarRequest):
    """Months over the next year in which a size drops under the order threshold."""
    try:
        config = get_replenishment_config(data.product_line)
        return OrderCalendarService(config).calculate_order_timing_calendar(
            data.inventory,
            current_month=data.current_month,
        )
    except Exception as e:
        return handle_error(e)
