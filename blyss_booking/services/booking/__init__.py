"""
Booking cart scheduling and submission.
"""

from .cache import AvailabilityCache, CancellationToken
from .coordinator import SchedulingCoordinator
from .submission import SubmissionFlow, SubmissionResult

__all__ = [
    "AvailabilityCache",
    "CancellationToken",
    "SchedulingCoordinator",
    "SubmissionFlow",
    "SubmissionResult",
]
