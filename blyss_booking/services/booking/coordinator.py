"""
Scheduling coordinator for the booking cart.

Keeps per-service staff availability in sync with the cart's salon, services
and date, fetches the shared time slots for the chosen date, and enforces that
a time is picked for a service before its employee.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Set

from ...core.enums import ServiceState
from ...core.exceptions import (
    BookingValidationError,
    EmployeeSelectionError,
    ExternalAPIError,
    SlotUnavailableError,
)
from ...core.models.booking import Cart, Employee, Service
from ...config import Settings, get_settings
from ...utils.logging import get_logger
from ...utils.validation import ValidationUtils
from ..external import ExternalAPIService
from ..memory import CartStateManager
from .cache import AvailabilityCache, CancellationToken

logger = get_logger("blyss.scheduling")


class SchedulingCoordinator:
    """Orchestrates availability fetches and selection rules for one cart."""

    def __init__(
        self,
        cart: Cart,
        external_api: ExternalAPIService,
        cache: Optional[AvailabilityCache] = None,
        state_manager: Optional[CartStateManager] = None,
        owner_key: str = "default",
        settings: Optional[Settings] = None,
    ) -> None:
        self.cart = cart
        self.external_api = external_api
        self.cache = cache if cache is not None else AvailabilityCache()
        self.state_manager = state_manager
        self.owner_key = owner_key
        self.concurrency = (settings or get_settings()).employee_fetch_concurrency

        self.employees_per_service: Dict[str, List[Employee]] = {}
        self.loading_employees: Set[str] = set()
        self.employee_errors: Dict[str, str] = {}
        self.active_service_id: Optional[str] = None
        self.slot_error: Optional[str] = None

        self._employees_token = CancellationToken()
        self._slots_token = CancellationToken()

    # ------------------------------------------------------------------
    # Cart mutations
    # ------------------------------------------------------------------

    async def restore(self) -> bool:
        """Load the persisted cart, if any, and refresh its availability."""
        if self.state_manager is None:
            return False

        stored = await self.state_manager.load_cart(self.owner_key)
        if stored is None:
            return False

        self.cart.salon_id = stored.salon_id
        self.cart.salon_name = stored.salon_name
        self.cart.selected_services = stored.selected_services
        self.cart.selected_date = stored.selected_date
        self._ensure_active_service()
        logger.info(
            "scheduling: restored cart for %s with %d service(s)",
            self.owner_key,
            len(stored.selected_services),
        )
        await self.refresh()
        return True

    async def set_salon(self, salon_id: str, salon_name: Optional[str]) -> None:
        changed = salon_id != self.cart.salon_id
        self.cart.set_salon(salon_id, salon_name)
        await self._persist()
        if changed:
            await self.refresh()

    async def add_service(self, service: Service) -> None:
        """Add a service; adding one already in the cart changes nothing."""
        if self.cart.get_service(service.id) is not None:
            return

        representative = self._representative_service_id()
        self.cart.add_service(service)
        self._ensure_active_service()
        await self._persist()
        await self._on_services_changed(representative)

    async def remove_service(self, service_id: str) -> None:
        if self.cart.get_service(service_id) is None:
            return

        representative = self._representative_service_id()
        self.cart.remove_service(service_id)
        self.employees_per_service.pop(service_id, None)
        self.loading_employees.discard(service_id)
        self.employee_errors.pop(service_id, None)
        if self.active_service_id == service_id:
            self.active_service_id = None
            self._ensure_active_service()
        await self._persist()
        await self._on_services_changed(representative)

    async def select_date(self, date: Optional[str]) -> None:
        """Change the booking date, dropping every service's time and employee."""
        valid, error = ValidationUtils.validate_date(date)
        if not valid:
            raise BookingValidationError(error)

        self.cart.set_selected_date(date)
        self.cart.reset_selections()
        self.active_service_id = None
        self._ensure_active_service()
        await self._persist()
        await self.refresh()

    async def select_time(self, service_id: str, time: Optional[str]) -> None:
        """
        Choose the time for a service.

        A previously chosen employee is kept even when not free at the new
        time; get_bookable_employees() shows them as unavailable until the
        user picks again. Clearing the time clears the employee as well. A time
        is refused while the slots for the date are still loading.
        """
        if self.cart.get_service(service_id) is None:
            return

        if time is None:
            self.cart.update_service_time(service_id, None)
            self.cart.update_service_employee(service_id, None)
        else:
            valid, error = ValidationUtils.validate_time(time)
            if not valid:
                raise BookingValidationError(error)
            if self.cart.is_loading_slots:
                raise SlotUnavailableError(
                    f"Slots for {self.cart.selected_date} are still loading"
                )
            if self.cart.find_slot(time) is None:
                raise SlotUnavailableError(
                    f"Time {time} is not available on {self.cart.selected_date}"
                )
            self.cart.update_service_time(service_id, time)

        self.active_service_id = service_id
        await self._persist()

    async def select_employee(
        self, service_id: str, employee: Optional[Employee]
    ) -> None:
        """Choose the employee for a service whose time is already set."""
        selection = self.cart.get_service(service_id)
        if selection is None:
            return

        if employee is None:
            self.cart.update_service_employee(service_id, None)
            await self._persist()
            return

        if selection.selected_time is None:
            raise EmployeeSelectionError(
                f"Choose a time for service {service_id} before choosing a specialist"
            )

        bookable = {e.id: e for e in self.get_bookable_employees(service_id)}
        if employee.id not in bookable:
            raise SlotUnavailableError(
                f"Specialist {employee.id} is not available at {selection.selected_time}"
            )

        # Cached record carries the service-specific price and duration
        self.cart.update_service_employee(service_id, bookable[employee.id])
        if self.active_service_id == service_id:
            self._advance_active_service(service_id)
        await self._persist()

    def set_active_service(self, service_id: str) -> None:
        if self.cart.get_service(service_id) is not None:
            self.active_service_id = service_id

    async def clear(self) -> None:
        """Drop the cart, its durable snapshot and all derived state."""
        self._employees_token.cancel()
        self._slots_token.cancel()
        self.cart.clear()
        self.employees_per_service.clear()
        self.loading_employees.clear()
        self.employee_errors.clear()
        self.active_service_id = None
        self.slot_error = None
        if self.state_manager is not None:
            await self.state_manager.clear_cart(self.owner_key)

    async def cancel(self) -> None:
        """Explicit cancellation of the booking by the user."""
        logger.info("scheduling: booking cancelled for %s", self.owner_key)
        await self.clear()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Re-fetch slots and employees for the current cart context."""
        await asyncio.gather(self.refresh_slots(), self.refresh_employees())

    async def refresh_employees(self) -> None:
        """
        Load employees for every service in the cart.

        Services are processed in list order with at most `concurrency`
        requests at once. A failure is recorded for its service only. Results
        arriving after a newer batch started are discarded.
        """
        self._employees_token.cancel()
        token = CancellationToken()
        self._employees_token = token

        service_ids = [s.id for s in self.cart.selected_services]
        self._prune(service_ids)
        self.loading_employees.clear()

        salon_id = self.cart.salon_id
        if not salon_id or not service_ids:
            return

        date = self.cart.selected_date
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _guarded(service_id: str) -> None:
            async with semaphore:
                if token.cancelled:
                    return
                await self._load_employees(service_id, salon_id, date, token)

        await asyncio.gather(*(_guarded(service_id) for service_id in service_ids))

    async def _load_employees(
        self,
        service_id: str,
        salon_id: str,
        date: Optional[str],
        token: CancellationToken,
    ) -> None:
        key = self.cache.make_key(service_id, date)
        cached = self.cache.get(key)
        if cached is not None:
            self._commit_employees(service_id, cached)
            return

        self.loading_employees.add(service_id)
        self.employee_errors.pop(service_id, None)
        try:
            employees = await self.cache.get_or_fetch(
                key,
                lambda: self.external_api.get_employees_for_service(
                    salon_id, service_id, date
                ),
            )
        except ExternalAPIError as e:
            if token.cancelled:
                logger.debug("scheduling: ignoring stale failure for %s: %s", key, e)
                return
            logger.warning("scheduling: employees fetch failed for %s: %s", key, e)
            self.employee_errors[service_id] = str(e)
            return
        finally:
            if not token.cancelled:
                self.loading_employees.discard(service_id)

        if token.cancelled:
            logger.debug("scheduling: discarding stale employees for %s", key)
            return
        self._commit_employees(service_id, employees)

    def _commit_employees(self, service_id: str, employees: List[Employee]) -> None:
        self.employees_per_service[service_id] = list(employees)
        self.employee_errors.pop(service_id, None)

    async def refresh_slots(self) -> None:
        """
        Fetch the shared slots for the selected date.

        Only the first service in the cart is sent as the slot query's
        service; availability is not intersected across all services. The
        previous slot list stays in place while the new one loads.
        """
        self._slots_token.cancel()
        token = CancellationToken()
        self._slots_token = token

        salon_id = self.cart.salon_id
        date = self.cart.selected_date
        service_id = self._representative_service_id()
        if not salon_id or not date or service_id is None:
            self.cart.set_available_slots([])
            self.cart.set_is_loading_slots(False)
            self.slot_error = None
            return

        self.cart.set_is_loading_slots(True)
        self.slot_error = None
        try:
            result = await self.external_api.get_available_slots(salon_id, date, service_id)
        except ExternalAPIError as e:
            if not token.cancelled:
                logger.error("scheduling: slots fetch failed for %s: %s", date, e)
                self.cart.set_available_slots([])
                self.slot_error = str(e)
            return
        finally:
            if not token.cancelled:
                self.cart.set_is_loading_slots(False)

        if token.cancelled:
            logger.debug("scheduling: discarding stale slots for %s", date)
            return
        self.cart.set_available_slots(result.slots)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def get_bookable_employees(self, service_id: str) -> List[Employee]:
        """
        Employees who can take the service at its chosen time.

        Without a chosen time every cached employee for the service is listed.
        """
        employees = self.employees_per_service.get(service_id, [])
        selection = self.cart.get_service(service_id)
        if selection is None or selection.selected_time is None:
            return list(employees)

        slot = self.cart.find_slot(selection.selected_time)
        if slot is None:
            return []
        free = set(slot.available_employees)
        return [e for e in employees if e.id in free]

    def is_employee_available(self, service_id: str, employee_id: str) -> bool:
        return any(e.id == employee_id for e in self.get_bookable_employees(service_id))

    def is_employee_selection_unlocked(self, service_id: str) -> bool:
        selection = self.cart.get_service(service_id)
        return selection is not None and selection.selected_time is not None

    def get_service_state(self, service_id: str) -> Optional[ServiceState]:
        selection = self.cart.get_service(service_id)
        return selection.state if selection is not None else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _representative_service_id(self) -> Optional[str]:
        services = self.cart.selected_services
        return services[0].id if services else None

    async def _on_services_changed(self, previous_representative: Optional[str]) -> None:
        if self._representative_service_id() != previous_representative:
            await self.refresh()
        else:
            await self.refresh_employees()

    def _ensure_active_service(self) -> None:
        if self.active_service_id is not None and self.cart.get_service(self.active_service_id):
            return
        services = self.cart.selected_services
        self.active_service_id = services[0].id if services else None

    def _advance_active_service(self, current_id: str) -> None:
        services = self.cart.selected_services
        ids = [s.id for s in services]
        if current_id not in ids:
            return
        start = ids.index(current_id)
        ordered = services[start + 1:] + services[:start]
        for selection in ordered:
            if not selection.is_complete:
                self.active_service_id = selection.id
                return

    def _prune(self, service_ids: List[str]) -> None:
        keep = set(service_ids)
        for mapping in (self.employees_per_service, self.employee_errors):
            for service_id in list(mapping):
                if service_id not in keep:
                    del mapping[service_id]

    async def _persist(self) -> None:
        if self.state_manager is not None:
            await self.state_manager.save_cart(self.owner_key, self.cart)
