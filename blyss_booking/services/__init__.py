"""
Service layer for the Blyss booking cart.
"""

from .booking import (
    AvailabilityCache,
    SchedulingCoordinator,
    SubmissionFlow,
)
from .external import ExternalAPIService
from .memory import BookingHistoryStore, CartStateManager
from .session import SessionService

__all__ = [
    "AvailabilityCache",
    "SchedulingCoordinator",
    "SubmissionFlow",
    "ExternalAPIService",
    "BookingHistoryStore",
    "CartStateManager",
    "SessionService",
]
