"""
External API-related exceptions.
"""

from typing import Optional


class ExternalAPIError(Exception):
    """Base exception for external API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BookingAPIError(ExternalAPIError):
    """Exception raised when the booking endpoint rejects a request."""
    pass
