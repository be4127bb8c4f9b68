"""
Custom exceptions module.

All application errors derive from AppError and carry an error code,
HTTP status and details for the standard error envelope.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,

    # Configuration
    ProductLineNotFoundError,
    ConfigurationError,
    UnsupportedOperationError,
    InvalidContainerCapacityError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",

    # Configuration
    "ProductLineNotFoundError",
    "ConfigurationError",
    "UnsupportedOperationError",
    "InvalidContainerCapacityError",
]
