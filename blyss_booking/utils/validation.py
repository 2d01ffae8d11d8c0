"""
Validation utilities for cart and selection data.
"""

from typing import TYPE_CHECKING, List, Optional, Tuple

from .date import DateParser, TimeParser

if TYPE_CHECKING:
    from ..core.models.booking import Cart


class ValidationUtils:
    """Validation utilities for various data types."""

    @staticmethod
    def validate_cart(cart: "Cart") -> List[str]:
        """
        Validate a cart for completeness before submission.

        Args:
            cart: Cart to validate

        Returns:
            List of validation error messages
        """
        errors = []

        if not cart.salon_id:
            errors.append("Salon is not selected")

        if not cart.selected_date:
            errors.append("Date is not selected")

        if not cart.selected_services:
            errors.append("At least one service must be selected")

        for selection in cart.selected_services:
            if not selection.selected_time:
                errors.append(f"Time is not selected for service {selection.id}")
            if not selection.selected_employee:
                errors.append(f"Specialist is not selected for service {selection.id}")

        return errors

    @staticmethod
    def validate_date(value: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate a booking date string.

        Returns:
            Tuple of (is_valid, error_message); None is a valid "no date".
        """
        if value is None:
            return True, None
        if not DateParser.is_valid_iso_date(value):
            return False, f"Invalid date '{value}', expected YYYY-MM-DD"
        return True, None

    @staticmethod
    def validate_time(value: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate a slot time string.

        Returns:
            Tuple of (is_valid, error_message); None is a valid "no time".
        """
        if value is None:
            return True, None
        if not TimeParser.is_valid_time_format(value):
            return False, f"Invalid time '{value}', expected HH:MM"
        return True, None
