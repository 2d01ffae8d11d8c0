"""
Durable storage for the cart snapshot and booking history.
"""

from .history import BookingHistoryStore
from .state_manager import CartStateManager

__all__ = ["BookingHistoryStore", "CartStateManager"]
