"""
Booking-related exceptions.
"""


class BookingFlowError(Exception):
    """Base exception for booking flow errors."""
    pass


class BookingValidationError(BookingFlowError):
    """Exception raised when booking validation fails."""
    pass


class EmployeeSelectionError(BookingValidationError):
    """Exception raised when an employee is chosen before a time."""
    pass


class SlotUnavailableError(BookingFlowError):
    """Exception raised when a time or employee is not available in the current slots."""
    pass


class BookingNotFoundError(BookingFlowError):
    """Exception raised when a booking record does not exist in history."""
    pass
