"""
Booking-related enums.
"""

from enum import Enum


class ServiceState(str, Enum):
    """Per-service selection progress within the cart."""

    UNSELECTED = "unselected"
    TIME_CHOSEN = "time_chosen"
    COMPLETE = "complete"


class BookingStatus(str, Enum):
    """Booking status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PendingAction(str, Enum):
    """Action remembered while the user authenticates."""

    CONFIRM_BOOKING = "confirm_booking"


class AuthResult(str, Enum):
    """Outcome reported by the external login dialog."""

    SUCCESS = "success"
    DISMISSED = "dismissed"


class SubmissionOutcome(str, Enum):
    """Result of a confirm or resume attempt."""

    SUBMITTED = "submitted"
    NOT_READY = "not_ready"
    IN_PROGRESS = "in_progress"
    AUTH_REQUIRED = "auth_required"
    ABANDONED = "abandoned"
    NOTHING_PENDING = "nothing_pending"
    FAILED = "failed"
