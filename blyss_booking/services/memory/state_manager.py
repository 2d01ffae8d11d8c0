"""
State manager for the persistent booking cart.
"""

import asyncio
import json
import sqlite3
from typing import Optional

from ...core.models.booking import Cart
from ...config import get_settings
from ...utils.logging import get_logger

logger = get_logger("blyss.state")


class CartStateManager:
    """Persists cart snapshots in a SQLite key/value table."""

    def __init__(self, db_path: Optional[str] = None):
        self.state_db = db_path or get_settings().state_db_path
        self._lock = asyncio.Lock()

    async def _ensure_table(self) -> None:
        """Ensure the cart table exists."""
        def _create_table():
            conn = sqlite3.connect(self.state_db)
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS cart (
                        owner_key TEXT PRIMARY KEY,
                        snapshot TEXT NOT NULL
                    )
                    """
                )
                conn.commit()
            finally:
                conn.close()

        await asyncio.to_thread(_create_table)

    async def load_cart(self, owner_key: str) -> Optional[Cart]:
        """Retrieve the stored cart for owner_key, if any."""
        await self._ensure_table()

        async with self._lock:
            def _fetch() -> Optional[str]:
                conn = sqlite3.connect(self.state_db)
                try:
                    cur = conn.execute(
                        "SELECT snapshot FROM cart WHERE owner_key = ?", (owner_key,)
                    )
                    row = cur.fetchone()
                finally:
                    conn.close()
                return row[0] if row else None

            snapshot_json = await asyncio.to_thread(_fetch)

        if snapshot_json is None:
            return None

        return Cart.from_snapshot(json.loads(snapshot_json))

    async def save_cart(self, owner_key: str, cart: Cart) -> None:
        """Persist the durable part of the cart for owner_key."""
        await self._ensure_table()
        snapshot_json = json.dumps(cart.to_snapshot(), ensure_ascii=False)

        async with self._lock:
            def _write() -> None:
                conn = sqlite3.connect(self.state_db)
                try:
                    conn.execute(
                        "INSERT OR REPLACE INTO cart (owner_key, snapshot) VALUES (?, ?)",
                        (owner_key, snapshot_json),
                    )
                    conn.commit()
                finally:
                    conn.close()

            await asyncio.to_thread(_write)

    async def clear_cart(self, owner_key: str) -> None:
        """Remove the stored cart for owner_key."""
        await self._ensure_table()

        async with self._lock:
            def _delete() -> None:
                conn = sqlite3.connect(self.state_db)
                try:
                    conn.execute("DELETE FROM cart WHERE owner_key = ?", (owner_key,))
                    conn.commit()
                finally:
                    conn.close()

            await asyncio.to_thread(_delete)

        logger.debug("state: cart cleared for %s", owner_key)
