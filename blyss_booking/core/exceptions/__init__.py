"""
Custom exceptions for the Blyss booking system.
"""

from .booking import (
    BookingFlowError,
    BookingNotFoundError,
    BookingValidationError,
    EmployeeSelectionError,
    SlotUnavailableError,
)
from .external import BookingAPIError, ExternalAPIError

__all__ = [
    "BookingFlowError",
    "BookingNotFoundError",
    "BookingValidationError",
    "EmployeeSelectionError",
    "SlotUnavailableError",
    "ExternalAPIError",
    "BookingAPIError",
]
