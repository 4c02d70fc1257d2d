"""Persistent record of when the user last interacted with each repository."""

import asyncio
import json
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from repo_ranker.domain.errors import StorageReadError
from repo_ranker.domain.repository import from_epoch_ms, to_epoch_ms, utc_now
from repo_ranker.infrastructure.storage import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "repository-access-times"


def decode_access_times(payload: str) -> Dict[str, datetime]:
    """
    Decode the stored JSON object of repository id -> epoch milliseconds.

    Raises:
        StorageReadError: If the payload is not a JSON object of numbers
    """
    try:
        data = json.loads(payload)
    except (ValueError, TypeError) as e:
        # json.JSONDecodeError is a ValueError; TypeError when the store holds a non-string value
        raise StorageReadError(f"Access ledger is not valid JSON text: {e}") from e

    if not isinstance(data, dict):
        raise StorageReadError("Access ledger is not a JSON object")

    access_times: Dict[str, datetime] = {}
    for repo_id, value in data.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise StorageReadError(f"Access time for {repo_id!r} is not a number: {value!r}")
        try:
            access_times[repo_id] = from_epoch_ms(value)
        except (OverflowError, OSError, ValueError) as e:
            raise StorageReadError(f"Access time for {repo_id!r} is out of range: {value!r}") from e
    return access_times


def encode_access_times(access_times: Dict[str, datetime]) -> str:
    return json.dumps({repo_id: to_epoch_ms(moment) for repo_id, moment in access_times.items()})


class AccessLedger:
    """
    Durable mapping of repository id to last access time.

    Entries are only added or overwritten, never removed. Every mutation
    rewrites the whole mapping. Read-modify-write cycles are serialized by an
    in-process lock so overlapping record_access calls never lose an update.

    An unreadable or corrupt ledger reads as empty; the next record_access
    replaces it with a fresh mapping.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        storage_key: str = STORAGE_KEY,
    ):
        self.store = store
        self.clock = clock
        self.storage_key = storage_key
        self._lock = asyncio.Lock()

    async def _read(self) -> Dict[str, datetime]:
        try:
            payload = await asyncio.to_thread(self.store.get, self.storage_key)
            if payload is None:
                return {}
            return decode_access_times(payload)
        except StorageReadError as e:
            logger.warning(f"Treating access ledger as empty: {e}")
            return {}

    async def get_all(self) -> Dict[str, datetime]:
        """Return repository id -> last access time (empty if nothing was recorded)."""
        return await self._read()

    async def record_access(self, repo_id: str, now: Optional[datetime] = None) -> None:
        """Set repo_id's last access time to now and persist the full ledger."""
        async with self._lock:
            access_times = await self._read()
            access_times[repo_id] = now or self.clock()
            await asyncio.to_thread(self.store.set, self.storage_key, encode_access_times(access_times))
        logger.debug(f"Recorded access to repository {repo_id}")
