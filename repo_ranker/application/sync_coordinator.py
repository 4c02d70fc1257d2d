"""Stale-while-revalidate loading of the ranked repository list."""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from repo_ranker.application.access_ledger import AccessLedger
from repo_ranker.application.error_classifier import classify_error
from repo_ranker.application.repository_cache import RepositoryCache
from repo_ranker.domain.errors import ErrorKind
from repo_ranker.domain.ranking import rank_repositories
from repo_ranker.domain.repository import Repository, utc_now

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[List[Repository]]]
IdentityProvider = Callable[[], Awaitable[str]]


class SyncState(str, Enum):
    LOADING = "loading"
    SHOWING_CACHE_FRESH = "showing_cache_fresh"
    SHOWING_CACHE_STALE_REFRESHING = "showing_cache_stale_refreshing"
    SHOWING_FRESH = "showing_fresh"
    ERRORED = "errored"


@dataclass(frozen=True)
class SyncSnapshot:
    """What the list view should display right now."""

    state: SyncState
    repositories: Tuple[Repository, ...] = ()
    is_loading: bool = False
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    current_user: Optional[str] = None
    fetched_at: Optional[datetime] = None

    def is_foreign(self, repo: Repository) -> bool:
        """True if repo belongs to someone other than the authenticated user."""
        return bool(self.current_user) and repo.owner != self.current_user


class SyncCoordinator:
    """
    Shows cached repositories immediately and refreshes them in the background.

    load() ranks and publishes the cached set before any network activity. A
    stale or missing cache starts a single background refresh; further load()
    calls while it runs reuse it instead of fetching again. When nothing was
    cached, load() waits for the refresh since there is nothing to show.

    A failed refresh moves to ERRORED even if a cached list is displayed: the
    cached repositories stay in the snapshot next to the error message.
    """

    def __init__(
        self,
        ledger: AccessLedger,
        cache: RepositoryCache,
        fetcher: Fetcher,
        identity_provider: Optional[IdentityProvider] = None,
        clock: Callable[[], datetime] = utc_now,
        on_change: Optional[Callable[[SyncSnapshot], None]] = None,
    ):
        """
        Initialize sync coordinator.

        Args:
            ledger: Access ledger supplying last access times
            cache: Repository cache
            fetcher: Coroutine function returning freshly fetched repositories
            identity_provider: Coroutine function returning the current user's login
            clock: Source of "now" for freshness checks
            on_change: Called with every new snapshot
        """
        self.ledger = ledger
        self.cache = cache
        self.fetcher = fetcher
        self.identity_provider = identity_provider
        self.clock = clock
        self.on_change = on_change

        self._snapshot = SyncSnapshot(state=SyncState.LOADING, is_loading=True)
        # Held set in fetch/cache order; re-ranked on every access
        self._repositories: Tuple[Repository, ...] = ()
        self._refresh_task: Optional[asyncio.Task] = None
        self._identity_task: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> SyncSnapshot:
        return self._snapshot

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def _publish(self, **changes) -> None:
        self._snapshot = replace(self._snapshot, **changes)
        if self.on_change:
            self.on_change(self._snapshot)

    async def load(self) -> SyncSnapshot:
        """
        Show cached repositories (if any) and revalidate them when stale.

        Returns:
            Snapshot after the cache was shown, or after the fetch completed
            when there was no cache
        """
        if self.is_refreshing:
            logger.info("Refresh already in flight, reusing it")
            if not self._snapshot.repositories:
                await asyncio.shield(self._refresh_task)
            return self._snapshot

        self._publish(state=SyncState.LOADING, is_loading=True, error=None, error_kind=None)

        access_times, entry = await asyncio.gather(self.ledger.get_all(), self.cache.read())

        if entry is not None:
            fresh = entry.is_fresh(self.clock(), self.cache.freshness_window)
            self._repositories = entry.repositories
            self._publish(
                state=SyncState.SHOWING_CACHE_FRESH if fresh else SyncState.SHOWING_CACHE_STALE_REFRESHING,
                repositories=tuple(rank_repositories(entry.repositories, access_times)),
                is_loading=False,
                fetched_at=entry.fetched_at,
            )
            logger.info(
                f"Showing {len(entry.repositories)} cached repositories "
                f"({'fresh' if fresh else 'stale'}, fetched at {entry.fetched_at.isoformat()})"
            )
            if not fresh:
                self._start_refresh()
            self._start_identity_lookup()
            return self._snapshot

        logger.info("No cached repositories, fetching")
        task = self._start_refresh()
        await asyncio.shield(task)
        return self._snapshot

    async def wait_for_refresh(self) -> SyncSnapshot:
        """Wait for the in-flight background refresh and user lookup, if any."""
        if self._refresh_task is not None:
            await asyncio.shield(self._refresh_task)
        if self._identity_task is not None:
            await asyncio.shield(self._identity_task)
        return self._snapshot

    async def record_access(self, repo_id: str) -> SyncSnapshot:
        """Record an open/copy of repo_id and re-rank the held repositories locally."""
        await self.ledger.record_access(repo_id)
        access_times = await self.ledger.get_all()
        self._publish(repositories=tuple(rank_repositories(self._repositories, access_times)))
        return self._snapshot

    def _start_refresh(self) -> asyncio.Task:
        if not self.is_refreshing:
            self._refresh_task = asyncio.ensure_future(self._refresh())
        return self._refresh_task

    async def _refresh(self) -> None:
        try:
            repositories = await self.fetcher()
        except Exception as e:
            error = classify_error(e)
            logger.error(f"Failed to fetch repositories ({error.kind.value}): {e}")
            self._publish(
                state=SyncState.ERRORED,
                is_loading=False,
                error=error.message,
                error_kind=error.kind,
            )
            return

        fetched_at = self.clock()
        try:
            entry = await self.cache.write(repositories)
            fetched_at = entry.fetched_at
        except Exception as e:
            # Fresh data is still shown; only the next start loses it
            logger.error(f"Failed to cache repositories: {e}")

        access_times = await self.ledger.get_all()
        self._repositories = tuple(repositories)
        self._publish(
            state=SyncState.SHOWING_FRESH,
            repositories=tuple(rank_repositories(self._repositories, access_times)),
            is_loading=False,
            error=None,
            error_kind=None,
            fetched_at=fetched_at,
        )
        logger.info(f"Showing {len(repositories)} freshly fetched repositories")

        self._start_identity_lookup()

    def _start_identity_lookup(self) -> None:
        if not self._repositories or self.identity_provider is None or self._snapshot.current_user:
            return
        if self._identity_task is not None and not self._identity_task.done():
            return
        self._identity_task = asyncio.ensure_future(self._resolve_current_user())

    async def _resolve_current_user(self) -> None:
        try:
            current_user = await self.identity_provider()
        except Exception as e:
            logger.warning(f"Could not determine the current user: {e}")
            return
        self._publish(current_user=current_user)
