"""
External API service for the salon platform (catalog, availability, bookings).
"""

from typing import Any, Callable, Dict, List, Optional
import httpx
from pydantic import ValidationError

from ...core.exceptions import BookingAPIError, ExternalAPIError
from ...core.models.booking import (
    AvailableSlots,
    BookingConfirmation,
    CreateBookingRequest,
    Employee,
)
from ...config import ExternalAPIConfig, get_settings
from ...utils.logging import get_logger

logger = get_logger("blyss.api")


class ExternalAPIService:
    """Service for handling salon platform API calls."""

    def __init__(
        self,
        config: Optional[ExternalAPIConfig] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.config = config or ExternalAPIConfig.from_settings(get_settings())
        self.timeout = self.config.timeout
        self.token_provider = token_provider

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_provider() if self.token_provider else self.config.access_token
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def _make_request(
        self,
        method: str,
        url: str,
        json: Optional[Dict] = None,
        params: Optional[Dict] = None,
        headers: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Make HTTP request with error handling."""
        request_headers = {"Content-Type": "application/json", **self._auth_headers()}
        request_headers.update(headers or {})

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    json=json,
                    params=params,
                    headers=request_headers,
                )
                response.raise_for_status()
                body = response.json()
                if not isinstance(body, dict):
                    logger.warning("api: %s %s returned a non-object body", method, url)
                    raise ExternalAPIError(
                        "Invalid JSON response: expected an object",
                        status_code=response.status_code,
                    )
                return body
        except httpx.TimeoutException:
            logger.warning("api: %s %s timed out after %ss", method, url, self.timeout)
            raise ExternalAPIError("Request timed out")
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            message = _error_message(e.response) or (
                f"HTTP error {status_code} {e.response.reason_phrase}".strip()
            )
            logger.warning("api: %s %s failed: %s", method, url, message)
            raise ExternalAPIError(message, status_code=status_code)
        except httpx.HTTPError as e:
            raise ExternalAPIError(f"Request failed: {str(e)}")
        except ValueError as e:
            raise ExternalAPIError(f"Invalid JSON response: {str(e)}")

    async def get_employees_for_service(
        self, salon_id: str, service_id: str, date: Optional[str] = None
    ) -> List[Employee]:
        """Get the employees who offer a service, optionally for a date."""
        url = self.config.get_employees_for_service_url(salon_id, service_id)
        params = {"date": date} if date else None

        result = await self._make_request("GET", url, params=params)
        try:
            return [Employee.model_validate(e) for e in result.get("employees") or []]
        except ValidationError as e:
            raise ExternalAPIError(f"Malformed employees response: {e}")

    async def get_available_slots(
        self,
        salon_id: str,
        date: str,
        service_id: str,
        employee_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> AvailableSlots:
        """Get the time slots for a date, annotated with free employees."""
        url = self.config.get_available_slots_url(salon_id)
        params: Dict[str, Any] = {"date": date, "service_id": service_id}
        if employee_id:
            params["employee_id"] = employee_id
        if duration_minutes:
            params["duration_minutes"] = str(duration_minutes)

        result = await self._make_request("GET", url, params=params)
        result.setdefault("date", date)
        try:
            return AvailableSlots.model_validate(result)
        except ValidationError as e:
            raise ExternalAPIError(f"Malformed slots response: {e}")

    async def create_booking(
        self,
        salon_id: str,
        request: CreateBookingRequest,
        idempotency_key: Optional[str] = None,
    ) -> BookingConfirmation:
        """Create a booking for the salon."""
        url = self.config.get_create_booking_url(salon_id)
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None

        try:
            result = await self._make_request(
                "POST", url, json=request.model_dump(mode="json"), headers=headers
            )
        except ExternalAPIError as e:
            raise BookingAPIError(str(e), status_code=e.status_code) from e

        try:
            return BookingConfirmation.model_validate(result)
        except ValidationError as e:
            raise BookingAPIError(f"Malformed booking response: {e}")

    async def cancel_booking(self, booking_id: str) -> Dict[str, Any]:
        """Cancel one of the current user's bookings."""
        url = self.config.get_cancel_booking_url(booking_id)
        try:
            return await self._make_request("PATCH", url)
        except ExternalAPIError as e:
            raise BookingAPIError(str(e), status_code=e.status_code) from e


def _error_message(response: httpx.Response) -> Optional[str]:
    """Extract the platform's 'error' field from a failed response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
