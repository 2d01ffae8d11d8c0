"""
Core data models for the Blyss booking system.
"""

from .booking import (
    AvailableSlots,
    Booking,
    BookingConfirmation,
    BookingItem,
    Cart,
    CreateBookingRequest,
    Employee,
    Service,
    ServiceSelection,
    TimeSlot,
)
from .user import UserProfile

__all__ = [
    "AvailableSlots",
    "Booking",
    "BookingConfirmation",
    "BookingItem",
    "Cart",
    "CreateBookingRequest",
    "Employee",
    "Service",
    "ServiceSelection",
    "TimeSlot",
    "UserProfile",
]
