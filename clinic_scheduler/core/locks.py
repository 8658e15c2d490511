"""Per-doctor, per-day write locks for the booking path."""

import asyncio
import hashlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

LockKey = tuple[UUID, date]


def advisory_lock_id(doctor_id: UUID, day: date) -> int:
    """Map a (doctor, day) pair onto a signed 64-bit PostgreSQL advisory lock id."""
    digest = hashlib.blake2b(f"{doctor_id}:{day.isoformat()}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class SlotLockRegistry:
    """
    In-process registry of asyncio locks keyed by (doctor_id, date).

    Entries are removed once nobody holds or waits for them, so the registry
    does not grow with the number of doctor-days ever booked.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._locks: dict[LockKey, asyncio.Lock] = {}
        self._holders: dict[LockKey, int] = {}

    def __len__(self) -> int:
        """Number of keys currently held or awaited."""
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, doctor_id: UUID, day: date) -> AsyncIterator[None]:
        """Hold the lock for one doctor-day for the duration of the block."""
        key = (doctor_id, day)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]


async def acquire_advisory_lock(session: AsyncSession, doctor_id: UUID, day: date) -> None:
    """
    Take a transaction-scoped advisory lock for the doctor-day on PostgreSQL.

    Serialises bookings across worker processes; released automatically on
    commit or rollback. A no-op on other backends.
    """
    if session.get_bind().dialect.name != "postgresql":
        return

    await session.execute(
        text("SELECT pg_advisory_xact_lock(:lock_id)"),
        {"lock_id": advisory_lock_id(doctor_id, day)},
    )


slot_locks = SlotLockRegistry()
