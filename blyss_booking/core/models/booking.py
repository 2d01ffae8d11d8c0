"""
Booking-related data models.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import BookingStatus, ServiceState
from ...utils.text import TextProcessor


def _now_iso() -> str:
    """Get current UTC datetime in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _coerce_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class Service(BaseModel):
    """Catalog service offered by a salon."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: Union[str, Dict[str, str]]
    duration_minutes: int = 0
    price: Union[int, str] = 0
    category: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @property
    def price_amount(self) -> int:
        """Catalog price as an integer, non-digit characters stripped."""
        return TextProcessor.parse_price(self.price)

    def display_name(self, language: str = "uz") -> str:
        """Name in the requested language, falling back to any available one."""
        return TextProcessor.localize(self.name, language, fallback=self.id)


class Employee(BaseModel):
    """Salon staff member with service-specific price and duration."""

    model_config = ConfigDict(extra="ignore")

    id: str
    first_name: str = ""
    last_name: Optional[str] = None
    position: str = ""
    availability_type: Optional[str] = None
    is_open_now: bool = False
    service_price: int = 0
    service_duration_minutes: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @property
    def full_name(self) -> str:
        return TextProcessor.full_name(self.first_name, self.last_name)


class TimeSlot(BaseModel):
    """Time slot with the employees free at that time."""

    model_config = ConfigDict(extra="ignore")

    time: str
    available_employees: List[str] = Field(default_factory=list)

    @field_validator("available_employees", mode="before")
    @classmethod
    def normalize_employee_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_coerce_id(v) for v in value]
        return value


class AvailableSlots(BaseModel):
    """Slot listing for one date."""

    model_config = ConfigDict(extra="ignore")

    date: str
    business_open: bool = True
    service_duration_minutes: Optional[int] = None
    slots: List[TimeSlot] = Field(default_factory=list)
    message: Optional[str] = None


class ServiceSelection(Service):
    """A service in the cart together with the user's time and employee choice."""

    selected_employee: Optional[Employee] = None
    selected_time: Optional[str] = None

    @classmethod
    def from_service(cls, service: Service) -> "ServiceSelection":
        """Start a fresh selection for a catalog service."""
        data = service.model_dump()
        data.pop("selected_employee", None)
        data.pop("selected_time", None)
        return cls(**data)

    @property
    def state(self) -> ServiceState:
        if self.selected_time is None:
            return ServiceState.UNSELECTED
        if self.selected_employee is None:
            return ServiceState.TIME_CHOSEN
        return ServiceState.COMPLETE

    @property
    def is_complete(self) -> bool:
        return self.selected_time is not None and self.selected_employee is not None

    @property
    def effective_price(self) -> int:
        """Employee-specific price when an employee is chosen, else the catalog price."""
        if self.selected_employee is not None:
            return self.selected_employee.service_price
        return self.price_amount

    @property
    def effective_duration(self) -> int:
        """Employee-specific duration when an employee is chosen, else the catalog duration."""
        if self.selected_employee is not None:
            return self.selected_employee.service_duration_minutes
        return self.duration_minutes


class BookingItem(BaseModel):
    """One line item of a booking request."""

    model_config = ConfigDict(extra="forbid")

    service_id: str
    service_name: Dict[str, str]
    employee_id: str
    employee_name: str
    start_time: str  # YYYY-MM-DDTHH:MM
    price: int
    duration_minutes: int


class CreateBookingRequest(BaseModel):
    """Payload for the booking creation endpoint."""

    model_config = ConfigDict(extra="forbid")

    business_id: str
    customer_name: str
    customer_phone: str
    customer_telegram_id: Optional[int] = None
    booking_date: str  # YYYY-MM-DD
    notes: Optional[str] = None
    items: List[BookingItem]


class BookingConfirmation(BaseModel):
    """Booking as returned by the booking creation endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str
    business_id: Optional[str] = None
    business_name: Optional[str] = None
    booking_date: Optional[str] = None
    status: str = BookingStatus.PENDING.value
    total_price: Optional[int] = None
    total_duration_minutes: Optional[int] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)


class Booking(BaseModel):
    """Locally recorded booking, created once on successful submission."""

    model_config = ConfigDict(extra="forbid")

    id: str
    salon_id: str
    salon_name: Optional[str] = None
    services: List[ServiceSelection]
    date: str
    time: str
    status: BookingStatus = BookingStatus.PENDING
    created_at: str = Field(default_factory=_now_iso)
    remote_id: Optional[str] = None


@dataclass
class Cart:
    """In-progress booking selection for one salon visit."""

    salon_id: Optional[str] = None
    salon_name: Optional[str] = None
    selected_services: List[ServiceSelection] = field(default_factory=list)
    selected_date: Optional[str] = None  # YYYY-MM-DD

    # Transient fetch state, never persisted
    available_slots: List[TimeSlot] = field(default_factory=list)
    is_loading_slots: bool = False

    def set_salon(self, salon_id: str, salon_name: Optional[str]) -> None:
        """Set the cart owner without touching existing selections."""
        self.salon_id = salon_id
        self.salon_name = salon_name

    def get_service(self, service_id: str) -> Optional[ServiceSelection]:
        for selection in self.selected_services:
            if selection.id == service_id:
                return selection
        return None

    def add_service(self, service: Service) -> None:
        """Append a fresh selection; a service already in the cart is ignored."""
        if self.get_service(service.id) is not None:
            return
        self.selected_services.append(ServiceSelection.from_service(service))

    def remove_service(self, service_id: str) -> None:
        self.selected_services = [
            s for s in self.selected_services if s.id != service_id
        ]

    def update_service_employee(
        self, service_id: str, employee: Optional[Employee]
    ) -> None:
        selection = self.get_service(service_id)
        if selection is not None:
            selection.selected_employee = employee

    def update_service_time(self, service_id: str, time: Optional[str]) -> None:
        selection = self.get_service(service_id)
        if selection is not None:
            selection.selected_time = time

    def set_selected_date(self, date: Optional[str]) -> None:
        """
        Set the booking date.

        Staff availability is date-scoped, so callers must pair this with
        reset_selections().
        """
        self.selected_date = date

    def reset_selections(self) -> None:
        """Clear every service's employee and time."""
        for selection in self.selected_services:
            selection.selected_employee = None
            selection.selected_time = None

    def set_available_slots(self, slots: List[TimeSlot]) -> None:
        self.available_slots = list(slots)

    def set_is_loading_slots(self, loading: bool) -> None:
        self.is_loading_slots = loading

    def find_slot(self, time: Optional[str]) -> Optional[TimeSlot]:
        if time is None:
            return None
        for slot in self.available_slots:
            if slot.time == time:
                return slot
        return None

    def get_total_price(self) -> int:
        return sum(s.effective_price for s in self.selected_services)

    def get_total_duration(self) -> int:
        return sum(s.effective_duration for s in self.selected_services)

    def is_ready_to_book(self) -> bool:
        """True when salon, date and every service's time and employee are set."""
        return bool(
            self.salon_id
            and self.selected_date
            and self.selected_services
            and all(s.is_complete for s in self.selected_services)
        )

    def clear(self) -> None:
        self.salon_id = None
        self.salon_name = None
        self.selected_services = []
        self.selected_date = None
        self.available_slots = []
        self.is_loading_slots = False

    def to_snapshot(self) -> Dict[str, Any]:
        """Durable form of the cart: identity and user selections only."""
        return {
            "salon_id": self.salon_id,
            "salon_name": self.salon_name,
            "selected_services": [
                s.model_dump(mode="json") for s in self.selected_services
            ],
            "selected_date": self.selected_date,
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "Cart":
        """Rebuild a cart from to_snapshot() output, ignoring unknown keys."""
        return cls(
            salon_id=data.get("salon_id"),
            salon_name=data.get("salon_name"),
            selected_services=[
                ServiceSelection.model_validate(s)
                for s in data.get("selected_services") or []
            ],
            selected_date=data.get("selected_date"),
        )
