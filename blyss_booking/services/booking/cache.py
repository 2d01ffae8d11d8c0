"""
In-memory staff availability cache keyed by (service, date).
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from ...core.models.booking import Employee

EmployeeFetcher = Callable[[], Awaitable[List[Employee]]]


class CancellationToken:
    """Marks the results of one fetch batch as stale once cancelled."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class AvailabilityCache:
    """
    Process-local cache of employees per service and date.

    Entries never expire; a hit is trusted until the owning coordinator goes
    away. Concurrent requests for a key share one in-flight fetch, and failed
    fetches are not stored.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[Employee]] = {}
        self._in_flight: Dict[str, "asyncio.Task[List[Employee]]"] = {}

    @staticmethod
    def make_key(service_id: str, date: Optional[str]) -> str:
        return f"{service_id}-{date or 'no-date'}"

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[List[Employee]]:
        employees = self._entries.get(key)
        return list(employees) if employees is not None else None

    def put(self, key: str, employees: List[Employee]) -> None:
        self._entries[key] = list(employees)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(self, key: str, fetch: EmployeeFetcher) -> List[Employee]:
        """Return the cached entry, joining or starting the fetch for key."""
        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, fetch))
            self._in_flight[key] = task

        # Shielded so one waiter's cancellation does not abort the shared fetch
        employees = await asyncio.shield(task)
        return list(employees)

    async def _fetch(self, key: str, fetch: EmployeeFetcher) -> List[Employee]:
        try:
            employees = await fetch()
            self.put(key, employees)
            return employees
        finally:
            self._in_flight.pop(key, None)
