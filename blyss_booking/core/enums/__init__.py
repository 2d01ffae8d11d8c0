"""
Enums for the Blyss booking system.
"""

from .booking import (
    AuthResult,
    BookingStatus,
    PendingAction,
    ServiceState,
    SubmissionOutcome,
)
from .language import Language

__all__ = [
    "AuthResult",
    "BookingStatus",
    "PendingAction",
    "ServiceState",
    "SubmissionOutcome",
    "Language",
]
