"""
External API configuration.
"""

from typing import Optional
from pydantic import BaseModel


class ExternalAPIConfig(BaseModel):
    """Salon platform API configuration settings."""

    base_url: str = "https://api.blyss.uz"
    timeout: float = 10.0
    access_token: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "ExternalAPIConfig":
        """Build the API config from application settings."""
        return cls(base_url=settings.api_base_url, timeout=settings.api_timeout)

    def _business_url(self, salon_id: str) -> str:
        return f"{self.base_url.rstrip('/')}/public/businesses/{salon_id}"

    def get_employees_for_service_url(self, salon_id: str, service_id: str) -> str:
        """Get the employees-for-service endpoint URL."""
        return f"{self._business_url(salon_id)}/services/{service_id}/employees"

    def get_available_slots_url(self, salon_id: str) -> str:
        """Get the available-slots endpoint URL."""
        return f"{self._business_url(salon_id)}/available-slots"

    def get_create_booking_url(self, salon_id: str) -> str:
        """Get the booking creation endpoint URL."""
        return f"{self._business_url(salon_id)}/bookings"

    def get_cancel_booking_url(self, booking_id: str) -> str:
        """Get the user booking cancellation endpoint URL."""
        return f"{self.base_url.rstrip('/')}/users/me/bookings/{booking_id}/cancel"
