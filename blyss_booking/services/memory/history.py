"""
Local history of confirmed bookings.
"""

import asyncio
import sqlite3
import uuid
from datetime import datetime
from typing import List, Optional

from ...core.enums import BookingStatus
from ...core.exceptions import BookingNotFoundError
from ...core.models.booking import Booking, ServiceSelection
from ...config import get_settings
from ...utils.date import DateParser
from ...utils.logging import get_logger

logger = get_logger("blyss.history")


class BookingHistoryStore:
    """Append-only SQLite record of bookings made through the flow."""

    def __init__(self, db_path: Optional[str] = None, timezone: Optional[str] = None):
        self.state_db = db_path or get_settings().state_db_path
        self.date_parser = DateParser(timezone)
        self._lock = asyncio.Lock()

    async def _ensure_table(self) -> None:
        def _create_table():
            conn = sqlite3.connect(self.state_db)
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS bookings (
                        id TEXT PRIMARY KEY,
                        salon_id TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        record TEXT NOT NULL
                    )
                    """
                )
                conn.commit()
            finally:
                conn.close()

        await asyncio.to_thread(_create_table)

    async def _write(self, booking: Booking, replace: bool) -> None:
        record = booking.model_dump_json()
        verb = "INSERT OR REPLACE" if replace else "INSERT"

        def _run() -> None:
            conn = sqlite3.connect(self.state_db)
            try:
                conn.execute(
                    f"{verb} INTO bookings (id, salon_id, created_at, record) VALUES (?, ?, ?, ?)",
                    (booking.id, booking.salon_id, booking.created_at, record),
                )
                conn.commit()
            finally:
                conn.close()

        async with self._lock:
            await asyncio.to_thread(_run)

    async def _read_all(self) -> List[Booking]:
        await self._ensure_table()

        def _fetch() -> List[str]:
            conn = sqlite3.connect(self.state_db)
            try:
                cur = conn.execute("SELECT record FROM bookings ORDER BY created_at")
                return [row[0] for row in cur.fetchall()]
            finally:
                conn.close()

        async with self._lock:
            rows = await asyncio.to_thread(_fetch)
        return [Booking.model_validate_json(row) for row in rows]

    async def add_booking(
        self,
        *,
        salon_id: str,
        salon_name: Optional[str],
        services: List[ServiceSelection],
        date: str,
        time: str,
        status: BookingStatus = BookingStatus.PENDING,
        remote_id: Optional[str] = None,
    ) -> Booking:
        """Record a new booking with a frozen copy of its services."""
        await self._ensure_table()
        booking = Booking(
            id=str(uuid.uuid4()),
            salon_id=salon_id,
            salon_name=salon_name,
            services=[s.model_copy(deep=True) for s in services],
            date=date,
            time=time,
            status=status,
            remote_id=remote_id,
        )
        await self._write(booking, replace=False)
        logger.info("history: booking %s recorded for salon %s", booking.id, salon_id)
        return booking

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        await self._ensure_table()

        def _fetch() -> Optional[str]:
            conn = sqlite3.connect(self.state_db)
            try:
                cur = conn.execute(
                    "SELECT record FROM bookings WHERE id = ?", (booking_id,)
                )
                row = cur.fetchone()
            finally:
                conn.close()
            return row[0] if row else None

        async with self._lock:
            record = await asyncio.to_thread(_fetch)
        return Booking.model_validate_json(record) if record else None

    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        """Change a booking's status; the only mutation history allows."""
        booking = await self.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")

        updated = booking.model_copy(update={"status": status})
        await self._write(updated, replace=True)
        return updated

    async def get_bookings_by_salon(self, salon_id: str) -> List[Booking]:
        return [b for b in await self._read_all() if b.salon_id == salon_id]

    async def get_upcoming_bookings(self, now: Optional[datetime] = None) -> List[Booking]:
        """Bookings at or after now that are not cancelled, soonest first."""
        now = now or self.date_parser.now()
        upcoming = [
            b for b in await self._read_all()
            if b.status != BookingStatus.CANCELLED and self._starts_at(b) >= now
        ]
        return sorted(upcoming, key=self._starts_at)

    async def get_past_bookings(self, now: Optional[datetime] = None) -> List[Booking]:
        """Bookings before now or cancelled, most recent first."""
        now = now or self.date_parser.now()
        past = [
            b for b in await self._read_all()
            if b.status == BookingStatus.CANCELLED or self._starts_at(b) < now
        ]
        return sorted(past, key=self._starts_at, reverse=True)

    def _starts_at(self, booking: Booking) -> datetime:
        return self.date_parser.parse_booking_datetime(booking.date, booking.time)
