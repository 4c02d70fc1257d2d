"""Persistent copy of the last fetched repository set."""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Tuple

from repo_ranker.config import DEFAULT_FRESHNESS_WINDOW
from repo_ranker.domain.errors import StorageReadError
from repo_ranker.domain.repository import Repository, from_epoch_ms, to_epoch_ms, utc_now
from repo_ranker.infrastructure.storage import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "repository-cache"


@dataclass(frozen=True)
class CacheEntry:
    """Repositories as last fetched, with the instant they were fetched."""

    repositories: Tuple[Repository, ...]
    fetched_at: datetime

    def is_fresh(self, now: datetime, window: timedelta = DEFAULT_FRESHNESS_WINDOW) -> bool:
        return now - self.fetched_at < window


def decode_cache_entry(payload: str) -> CacheEntry:
    try:
        data = json.loads(payload)
        repositories = tuple(Repository.from_dict(item) for item in data["repositories"])
        fetched_at = from_epoch_ms(data["fetched_at"])
    except (ValueError, KeyError, TypeError, AttributeError, OverflowError) as e:
        # json.JSONDecodeError is a ValueError
        raise StorageReadError(f"Repository cache is malformed: {e}") from e
    return CacheEntry(repositories=repositories, fetched_at=fetched_at)


def encode_cache_entry(entry: CacheEntry) -> str:
    return json.dumps(
        {
            "repositories": [repo.to_dict() for repo in entry.repositories],
            "fetched_at": to_epoch_ms(entry.fetched_at),
        },
        ensure_ascii=False,
    )


class RepositoryCache:
    """Stores the last fetched repositories; replaced wholesale on each write."""

    def __init__(
        self,
        store: KeyValueStore,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        clock: Callable[[], datetime] = utc_now,
        storage_key: str = STORAGE_KEY,
    ):
        """
        Initialize repository cache.

        Args:
            store: Durable key-value store
            freshness_window: Maximum age before the cache counts as stale
            clock: Source of fetched_at for writes
            storage_key: Store key (one per listing scope)
        """
        self.store = store
        self.freshness_window = freshness_window
        self.clock = clock
        self.storage_key = storage_key

    async def read(self) -> Optional[CacheEntry]:
        """Return the cached entry, or None if never written or unreadable."""
        try:
            payload = await asyncio.to_thread(self.store.get, self.storage_key)
            if payload is None:
                return None
            return decode_cache_entry(payload)
        except StorageReadError as e:
            logger.warning(f"Ignoring unreadable repository cache: {e}")
            return None

    async def write(self, repositories: Iterable[Repository], now: Optional[datetime] = None) -> CacheEntry:
        """Replace the cached entry with repositories, stamped with the current instant."""
        entry = CacheEntry(repositories=tuple(repositories), fetched_at=now or self.clock())
        await asyncio.to_thread(self.store.set, self.storage_key, encode_cache_entry(entry))
        logger.info(f"Cached {len(entry.repositories)} repositories")
        return entry

    async def is_fresh(self, now: datetime, window: Optional[timedelta] = None) -> bool:
        """True iff an entry exists and was fetched less than window ago."""
        entry = await self.read()
        if entry is None:
            return False
        return entry.is_fresh(now, window if window is not None else self.freshness_window)
