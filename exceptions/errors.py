"""
Custom exception classes for the application.

Business outcomes (stockouts, overstock, unfilled pallets) are data and
never raised. These exceptions cover configuration and request problems.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.
    
    All custom exceptions inherit from this.
    
    Attributes:
        code: Error code (e.g., "PRODUCT_LINE_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """
    
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)
    
    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""
    
    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""
    
    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


# ===================
# CONFIGURATION ERRORS
# ===================

class ProductLineNotFoundError(NotFoundError):
    """No configuration preset for the requested product line."""

    def __init__(self, product_line: str):
        super().__init__(
            resource="Product line",
            identifier=product_line,
            code="PRODUCT_LINE_NOT_FOUND"
        )


class ConfigurationError(ValidationError):
    """Business configuration could not be loaded or is invalid."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=message,
            details=details
        )


class UnsupportedOperationError(ValidationError):
    """Operation does not apply to this product line (e.g. pallet orders for latex)."""

    def __init__(self, product_line: str, operation: str):
        super().__init__(
            code="OPERATION_NOT_SUPPORTED",
            message=f"{operation} is not available for product line '{product_line}'",
            details={"product_line": product_line, "operation": operation}
        )


class InvalidContainerCapacityError(ValidationError):
    """Requested container capacity is not one the product line ships in."""

    def __init__(self, capacity: int, allowed: list[int]):
        super().__init__(
            code="INVALID_CONTAINER_CAPACITY",
            message=f"Container capacity {capacity} is not available",
            details={"capacity": capacity, "allowed": allowed}
        )
