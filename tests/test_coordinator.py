"""
Tests for the scheduling coordinator.
"""

import asyncio
from unittest.mock import call

import httpx
import pytest

from blyss_booking.config import ExternalAPIConfig

from blyss_booking.core.enums import ServiceState
from blyss_booking.core.exceptions import (
    BookingValidationError,
    EmployeeSelectionError,
    ExternalAPIError,
    SlotUnavailableError,
)
from blyss_booking.core.models.booking import AvailableSlots, Cart, TimeSlot
from blyss_booking.services.booking import SchedulingCoordinator
from blyss_booking.services.external import ExternalAPIService


async def _settle():
    for _ in range(10):
        await asyncio.sleep(0)


async def _prepare(coordinator, *services, date="2025-01-10"):
    await coordinator.set_salon("salon-1", "Blyss Beauty")
    for service in services:
        await coordinator.add_service(service)
    await coordinator.select_date(date)


@pytest.mark.asyncio
async def test_date_change_fetches_employees_for_new_date(coordinator, mock_external_api, haircut):
    await _prepare(coordinator, haircut, date="2025-01-10")
    await coordinator.select_date("2025-01-11")

    calls = mock_external_api.get_employees_for_service.call_args_list
    assert call("salon-1", "1", "2025-01-10") in calls
    assert call("salon-1", "1", "2025-01-11") in calls
    assert calls[-1] == call("salon-1", "1", "2025-01-11")
    assert "1-2025-01-10" in coordinator.cache
    assert "1-2025-01-11" in coordinator.cache


@pytest.mark.asyncio
async def test_cached_employees_are_reused(coordinator, mock_external_api, haircut):
    await _prepare(coordinator, haircut, date="2025-01-10")
    await coordinator.select_date("2025-01-11")
    await coordinator.select_date("2025-01-10")

    dated_calls = [
        c for c in mock_external_api.get_employees_for_service.call_args_list
        if c == call("salon-1", "1", "2025-01-10")
    ]
    assert len(dated_calls) == 1


@pytest.mark.asyncio
async def test_select_date_resets_selections(coordinator, haircut, aziza):
    await _prepare(coordinator, haircut)
    await coordinator.select_time("1", "14:00")
    await coordinator.select_employee("1", aziza)

    await coordinator.select_date("2025-01-11")

    selection = coordinator.cart.get_service("1")
    assert selection.selected_time is None
    assert selection.selected_employee is None


@pytest.mark.asyncio
async def test_invalid_date_is_rejected(coordinator, haircut):
    await _prepare(coordinator, haircut)

    with pytest.raises(BookingValidationError):
        await coordinator.select_date("10.01.2025")

    assert coordinator.cart.selected_date == "2025-01-10"


@pytest.mark.asyncio
async def test_time_unlocks_employee_selection_per_service(coordinator, haircut, manicure, aziza, dilnoza):
    await _prepare(coordinator, haircut, manicure)

    await coordinator.select_time("1", "14:00")

    assert coordinator.is_employee_selection_unlocked("1")
    assert not coordinator.is_employee_selection_unlocked("2")
    assert coordinator.get_bookable_employees("1") == [aziza, dilnoza]
    assert coordinator.get_service_state("1") == ServiceState.TIME_CHOSEN
    with pytest.raises(EmployeeSelectionError):
        await coordinator.select_employee("2", dilnoza)
    assert coordinator.cart.get_service("2").selected_employee is None


@pytest.mark.asyncio
async def test_bookable_employees_follow_the_chosen_slot(coordinator, haircut, aziza, dilnoza):
    await _prepare(coordinator, haircut)

    await coordinator.select_time("1", "15:00")

    assert coordinator.get_bookable_employees("1") == [dilnoza]
    assert not coordinator.is_employee_available("1", aziza.id)
    with pytest.raises(SlotUnavailableError):
        await coordinator.select_employee("1", aziza)


@pytest.mark.asyncio
async def test_time_outside_slots_is_rejected(coordinator, haircut):
    await _prepare(coordinator, haircut)

    with pytest.raises(SlotUnavailableError):
        await coordinator.select_time("1", "18:00")
    with pytest.raises(BookingValidationError):
        await coordinator.select_time("1", "2pm")

    assert coordinator.cart.get_service("1").selected_time is None


@pytest.mark.asyncio
async def test_changing_time_keeps_chosen_employee(coordinator, haircut, aziza):
    await _prepare(coordinator, haircut)
    await coordinator.select_time("1", "14:00")
    await coordinator.select_employee("1", aziza)

    await coordinator.select_time("1", "15:00")

    selection = coordinator.cart.get_service("1")
    assert selection.selected_employee == aziza
    assert not coordinator.is_employee_available("1", aziza.id)


@pytest.mark.asyncio
async def test_clearing_time_clears_employee(coordinator, haircut, aziza):
    await _prepare(coordinator, haircut)
    await coordinator.select_time("1", "14:00")
    await coordinator.select_employee("1", aziza)

    await coordinator.select_time("1", None)

    assert coordinator.get_service_state("1") == ServiceState.UNSELECTED
    assert coordinator.cart.get_service("1").selected_employee is None


@pytest.mark.asyncio
async def test_active_service_advances_to_next_incomplete(coordinator, haircut, manicure, aziza, dilnoza):
    await _prepare(coordinator, haircut, manicure)
    assert coordinator.active_service_id == "1"

    await coordinator.select_time("1", "10:00")
    await coordinator.select_employee("1", aziza)
    assert coordinator.active_service_id == "2"

    await coordinator.select_time("2", "14:00")
    await coordinator.select_employee("2", dilnoza)
    assert coordinator.active_service_id == "2"
    assert coordinator.cart.is_ready_to_book()


@pytest.mark.asyncio
async def test_employee_fetch_failure_is_isolated(coordinator, mock_external_api, haircut, manicure, aziza):
    async def fetch(salon_id, service_id, date=None):
        if service_id == "2":
            raise ExternalAPIError("Employees unavailable")
        return [aziza]

    mock_external_api.get_employees_for_service.side_effect = fetch

    await _prepare(coordinator, haircut, manicure)

    assert coordinator.employees_per_service["1"] == [aziza]
    assert "2" not in coordinator.employees_per_service
    assert coordinator.employee_errors == {"2": "Employees unavailable"}
    assert coordinator.loading_employees == set()
    assert "2-2025-01-10" not in coordinator.cache


@pytest.mark.asyncio
async def test_stale_employee_results_are_discarded(coordinator, mock_external_api, haircut, aziza, dilnoza):
    release = asyncio.Event()

    async def fetch(salon_id, service_id, date=None):
        if date == "2025-01-10":
            await release.wait()
            return [aziza]
        return [dilnoza]

    mock_external_api.get_employees_for_service.side_effect = fetch
    coordinator.cart.set_salon("salon-1", "Blyss Beauty")
    coordinator.cart.add_service(haircut)
    coordinator.cart.set_selected_date("2025-01-10")

    first = asyncio.ensure_future(coordinator.refresh_employees())
    await _settle()
    assert "1" in coordinator.loading_employees

    coordinator.cart.set_selected_date("2025-01-11")
    await coordinator.refresh_employees()
    assert coordinator.employees_per_service["1"] == [dilnoza]

    release.set()
    await first

    assert coordinator.employees_per_service["1"] == [dilnoza]
    assert coordinator.cache.get("1-2025-01-10") == [aziza]


@pytest.mark.asyncio
async def test_employee_fetches_respect_concurrency_limit(mock_external_api, state_manager, settings, haircut, manicure, aziza):
    settings.employee_fetch_concurrency = 2
    active = 0
    peak = 0

    async def fetch(salon_id, service_id, date=None):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0)
        active -= 1
        return [aziza]

    mock_external_api.get_employees_for_service.side_effect = fetch
    coordinator = SchedulingCoordinator(
        Cart(salon_id="salon-1", selected_date="2025-01-10"),
        mock_external_api,
        state_manager=state_manager,
        settings=settings,
    )
    coordinator.cart.add_service(haircut)
    coordinator.cart.add_service(manicure)

    await coordinator.refresh_employees()

    assert peak == 2
    assert set(coordinator.employees_per_service) == {"1", "2"}


@pytest.mark.asyncio
async def test_slots_are_queried_for_first_service_only(coordinator, mock_external_api, haircut, manicure):
    await _prepare(coordinator, haircut, manicure)

    for c in mock_external_api.get_available_slots.call_args_list:
        assert c == call("salon-1", "2025-01-10", "1")


@pytest.mark.asyncio
async def test_slot_failure_clears_list(coordinator, mock_external_api, haircut):
    await _prepare(coordinator, haircut)
    assert coordinator.cart.available_slots

    mock_external_api.get_available_slots.side_effect = ExternalAPIError("Slots down")
    await coordinator.select_date("2025-01-11")

    assert coordinator.cart.available_slots == []
    assert coordinator.slot_error == "Slots down"
    assert coordinator.cart.is_loading_slots is False


@pytest.mark.asyncio
async def test_previous_slots_stay_visible_while_loading(coordinator, mock_external_api, haircut, slots):
    await _prepare(coordinator, haircut)
    release = asyncio.Event()

    async def slow_slots(salon_id, date, service_id):
        await release.wait()
        return AvailableSlots(date=date, slots=[TimeSlot(time="09:00", available_employees=["10"])])

    mock_external_api.get_available_slots.side_effect = slow_slots
    pending = asyncio.ensure_future(coordinator.refresh_slots())
    await _settle()

    assert coordinator.cart.is_loading_slots
    assert coordinator.cart.available_slots == slots.slots

    release.set()
    await pending

    assert not coordinator.cart.is_loading_slots
    assert [s.time for s in coordinator.cart.available_slots] == ["09:00"]


@pytest.mark.asyncio
async def test_no_slot_request_without_date(coordinator, mock_external_api, haircut):
    await coordinator.set_salon("salon-1", "Blyss Beauty")
    await coordinator.add_service(haircut)

    mock_external_api.get_available_slots.assert_not_called()
    assert coordinator.cart.available_slots == []
    mock_external_api.get_employees_for_service.assert_called_with("salon-1", "1", None)


@pytest.mark.asyncio
async def test_remove_service_prunes_derived_state(coordinator, haircut, manicure):
    await _prepare(coordinator, haircut, manicure)
    coordinator.set_active_service("2")

    await coordinator.remove_service("2")

    assert set(coordinator.employees_per_service) == {"1"}
    assert coordinator.active_service_id == "1"


@pytest.mark.asyncio
async def test_selections_survive_restart(coordinator, mock_external_api, state_manager, settings, haircut, aziza):
    await _prepare(coordinator, haircut)
    await coordinator.select_time("1", "14:00")
    await coordinator.select_employee("1", aziza)

    restored = SchedulingCoordinator(
        Cart(), mock_external_api, state_manager=state_manager, owner_key="user-1", settings=settings
    )
    assert await restored.restore()

    selection = restored.cart.get_service("1")
    assert restored.cart.salon_id == "salon-1"
    assert restored.cart.selected_date == "2025-01-10"
    assert selection.selected_time == "14:00"
    assert selection.selected_employee == aziza
    assert restored.cart.available_slots


@pytest.mark.asyncio
async def test_cancel_clears_cart_and_snapshot(coordinator, state_manager, haircut):
    await _prepare(coordinator, haircut)

    await coordinator.cancel()

    assert coordinator.cart.selected_services == []
    assert coordinator.employees_per_service == {}
    assert coordinator.active_service_id is None
    assert await state_manager.load_cart("user-1") is None


@pytest.mark.asyncio
async def test_non_object_employee_body_is_isolated(monkeypatch, state_manager, settings, haircut, manicure):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/services/2/employees"):
            return httpx.Response(200, json=[])
        if request.url.path.endswith("/services/1/employees"):
            return httpx.Response(200, json={"employees": [{"id": 10, "first_name": "Aziza"}]})
        return httpx.Response(200, json={"slots": [{"time": "14:00", "available_employees": [10]}]})

    transport = httpx.MockTransport(handler)

    original_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = transport
        return original_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)

    api = ExternalAPIService(ExternalAPIConfig(base_url="https://api.test"))
    coordinator = SchedulingCoordinator(Cart(), api, state_manager=state_manager, settings=settings)
    await _prepare(coordinator, haircut, manicure)

    assert [e.id for e in coordinator.employees_per_service["1"]] == ["10"]
    assert "2" in coordinator.employee_errors
    assert "2" not in coordinator.employees_per_service
    assert coordinator.loading_employees == set()
    assert [s.time for s in coordinator.cart.available_slots] == ["14:00"]


@pytest.mark.asyncio
async def test_non_object_slots_body_clears_list(monkeypatch, state_manager, settings, haircut):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/available-slots"):
            return httpx.Response(200, content=b"null", headers={"Content-Type": "application/json"})
        return httpx.Response(200, json={"employees": []})

    transport = httpx.MockTransport(handler)

    original_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = transport
        return original_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)

    api = ExternalAPIService(ExternalAPIConfig(base_url="https://api.test"))
    coordinator = SchedulingCoordinator(Cart(), api, state_manager=state_manager, settings=settings)
    await _prepare(coordinator, haircut)

    assert coordinator.cart.available_slots == []
    assert coordinator.slot_error == "Invalid JSON response: expected an object"
    assert not coordinator.cart.is_loading_slots


@pytest.mark.asyncio
async def test_time_is_refused_while_new_slots_load(coordinator, mock_external_api, haircut):
    await _prepare(coordinator, haircut, date="2025-01-10")
    release = asyncio.Event()

    async def slow_slots(salon_id, date, service_id):
        await release.wait()
        return AvailableSlots(date=date, slots=[TimeSlot(time="09:00", available_employees=["10"])])

    mock_external_api.get_available_slots.side_effect = slow_slots
    pending = asyncio.ensure_future(coordinator.select_date("2025-01-11"))
    for _ in range(200):
        if coordinator.cart.is_loading_slots:
            break
        await asyncio.sleep(0.01)
    assert coordinator.cart.is_loading_slots

    with pytest.raises(SlotUnavailableError):
        await coordinator.select_time("1", "14:00")

    release.set()
    await pending

    assert coordinator.cart.get_service("1").selected_time is None
    await coordinator.select_time("1", "09:00")
    assert coordinator.cart.get_service("1").selected_time == "09:00"
