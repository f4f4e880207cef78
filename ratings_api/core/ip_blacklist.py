"""
In-memory snapshot of blocked client addresses.

Requests consult the snapshot only; the database is read by a background
task every ``IP_BLACKLIST_REFRESH_SECONDS``. An address added to the table is
therefore enforced at most one refresh interval later.
"""
import asyncio
import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session

from ratings_api.core.periods import utcnow

logger = logging.getLogger(__name__)


class IpBlacklist:
    """Thread-safe holder of an immutable set of blocked addresses."""

    def __init__(self, ip_addresses: Iterable[str] = ()):
        self._lock = threading.RLock()
        self._ips = frozenset(ip_addresses)
        self._refreshed_at: Optional[datetime] = None

    def replace(self, ip_addresses: Iterable[str]) -> None:
        snapshot = frozenset(ip_addresses)
        with self._lock:
            self._ips = snapshot
            self._refreshed_at = utcnow()

    def contains(self, ip_address: Optional[str]) -> bool:
        if not ip_address:
            return False
        with self._lock:
            return ip_address in self._ips

    @property
    def refreshed_at(self) -> Optional[datetime]:
        with self._lock:
            return self._refreshed_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._ips)


def reload_blacklist(blacklist: IpBlacklist, session_factory: Callable[[], Session]) -> int:
    """Load the table into ``blacklist``. Returns the snapshot size."""
    from ratings_api.services.ip_blacklist import get_ips

    db = session_factory()
    try:
        blacklist.replace(get_ips(db))
    finally:
        db.close()
    return len(blacklist)


async def refresh_loop(
    blacklist: IpBlacklist,
    session_factory: Callable[[], Session],
    interval: float,
) -> None:
    """
    Reload the snapshot forever, sleeping ``interval`` seconds between loads.

    A failed reload is logged and the previous snapshot stays in force.
    """
    while True:
        try:
            count = await asyncio.to_thread(reload_blacklist, blacklist, session_factory)
            logger.info(f"IP blacklist refreshed: {count} address(es)")
        except Exception as e:
            logger.error(f"IP blacklist refresh failed, keeping previous snapshot: {e}")

        await asyncio.sleep(interval)
