"""
Pytest configuration and fixtures.
"""

import pytest
from unittest.mock import Mock, AsyncMock

from blyss_booking.config import Settings
from blyss_booking.core.models.booking import (
    AvailableSlots,
    BookingConfirmation,
    Cart,
    Employee,
    Service,
    TimeSlot,
)
from blyss_booking.core.models.user import UserProfile
from blyss_booking.services.booking import AvailabilityCache, SchedulingCoordinator
from blyss_booking.services.external import ExternalAPIService
from blyss_booking.services.memory import BookingHistoryStore, CartStateManager
from blyss_booking.services.session import SessionService


@pytest.fixture
def settings(tmp_path):
    """Settings pointing storage at a temporary database."""
    return Settings(state_db_path=str(tmp_path / "state.db"))


@pytest.fixture
def haircut():
    return Service(id=1, name={"uz": "Soch olish", "ru": "Стрижка"}, duration_minutes=30, price="40,000")


@pytest.fixture
def manicure():
    return Service(id=2, name="Manikyur", duration_minutes=45, price="25,000")


@pytest.fixture
def aziza():
    return Employee(
        id=10,
        first_name="Aziza",
        last_name="Karimova",
        position="Stylist",
        service_price=45000,
        service_duration_minutes=40,
    )


@pytest.fixture
def dilnoza():
    return Employee(
        id=11,
        first_name="Dilnoza",
        position="Master",
        service_price=25000,
        service_duration_minutes=45,
    )


@pytest.fixture
def slots():
    return AvailableSlots(
        date="2025-01-10",
        slots=[
            TimeSlot(time="10:00", available_employees=["10", "11"]),
            TimeSlot(time="14:00", available_employees=["10", "11"]),
            TimeSlot(time="15:00", available_employees=["11"]),
        ],
    )


@pytest.fixture
def mock_external_api(aziza, dilnoza, slots):
    """Mock external API service."""
    api = Mock(spec=ExternalAPIService)
    api.get_employees_for_service = AsyncMock(return_value=[aziza, dilnoza])
    api.get_available_slots = AsyncMock(return_value=slots)
    api.create_booking = AsyncMock(
        return_value=BookingConfirmation(id="b-100", business_id="salon-1", status="pending")
    )
    api.cancel_booking = AsyncMock(return_value={"id": "b-100", "status": "cancelled"})
    return api


@pytest.fixture
def state_manager(settings):
    return CartStateManager(settings.state_db_path)


@pytest.fixture
def history(settings):
    return BookingHistoryStore(settings.state_db_path, timezone="Asia/Tashkent")


@pytest.fixture
def coordinator(mock_external_api, state_manager, settings):
    """Coordinator over an empty cart with mocked dependencies."""
    return SchedulingCoordinator(
        Cart(),
        mock_external_api,
        cache=AvailabilityCache(),
        state_manager=state_manager,
        owner_key="user-1",
        settings=settings,
    )


@pytest.fixture
def profile():
    return UserProfile(first_name="Malika", last_name="Tosheva", phone_number="+998901234567", telegram_id=42)


@pytest.fixture
def authenticated_session(profile):
    return SessionService(access_token="token-123", profile=profile)


@pytest.fixture
def anonymous_session():
    return SessionService()
