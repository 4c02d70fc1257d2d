#!/usr/bin/env python3
"""Script to list your GitHub repositories, most recently used first."""

import argparse
import asyncio
import functools
import logging
import sys
import os
from typing import Optional, Sequence

# Add the project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from repo_ranker.application.access_ledger import AccessLedger
from repo_ranker.application.repository_cache import STORAGE_KEY as CACHE_KEY, RepositoryCache
from repo_ranker.application.repository_service import RepositoryService
from repo_ranker.application.sync_coordinator import SyncCoordinator, SyncSnapshot, SyncState
from repo_ranker.config import load_settings
from repo_ranker.domain.repository import Repository
from repo_ranker.infrastructure.github_client import GitHubRestClient
from repo_ranker.infrastructure.storage import build_store

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def find_repository(repositories: Sequence[Repository], query: str) -> Optional[Repository]:
    """Look a repository up by id or full name (case-insensitive)."""
    for repo in repositories:
        if repo.id == query or repo.full_name.lower() == query.lower():
            return repo
    return None


def format_repository(repo: Repository, snapshot: SyncSnapshot) -> str:
    parts = [repo.full_name]
    if snapshot.is_foreign(repo):
        parts.append(f"[{repo.owner}]")
    if repo.stars > 0:
        parts.append(f"★ {repo.stars}")
    if repo.is_private:
        parts.append("(private)")
    if repo.description:
        parts.append(f"- {repo.description}")
    return " ".join(parts)


def print_snapshot(snapshot: SyncSnapshot):
    if snapshot.state == SyncState.ERRORED:
        print(f"Error loading repositories: {snapshot.error}", file=sys.stderr)
    if not snapshot.repositories and snapshot.state != SyncState.ERRORED:
        print("No repositories found")
    for repo in snapshot.repositories:
        print(format_repository(repo, snapshot))


async def run(owner: Optional[str], open_query: Optional[str]) -> int:
    settings = load_settings()
    if not settings.github_token:
        logger.warning("GITHUB_TOKEN not found. Using unauthenticated requests (limited rate).")

    store = build_store(settings)
    github_client = GitHubRestClient(token=settings.github_token, api_url=settings.github_api_url)
    service = RepositoryService(
        github_client,
        decay_days=settings.decay_days,
        star_weight=settings.star_weight,
    )

    if owner:
        fetcher = functools.partial(service.fetch_repositories_by_owner, owner)
        cache_key = f"{CACHE_KEY}:{owner}"
    else:
        fetcher = service.fetch_repositories
        cache_key = CACHE_KEY

    coordinator = SyncCoordinator(
        ledger=AccessLedger(store),
        cache=RepositoryCache(store, freshness_window=settings.freshness_window, storage_key=cache_key),
        fetcher=fetcher,
        identity_provider=service.get_current_user if settings.github_token else None,
    )

    await coordinator.load()
    snapshot = await coordinator.wait_for_refresh()

    if open_query:
        repo = find_repository(snapshot.repositories, open_query)
        if repo is None:
            logger.error(f"Repository not found: {open_query}")
            return 1
        snapshot = await coordinator.record_access(repo.id)
        print(repo.url)

    print_snapshot(snapshot)
    return 1 if snapshot.state == SyncState.ERRORED else 0


def main():
    """List repositories ranked by recent access and usage score."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--owner", help="List repositories of this user or organization instead")
    parser.add_argument("--open", dest="open_query", metavar="REPO",
                        help="Record an access to REPO (id or owner/name) and print its URL")
    args = parser.parse_args()

    try:
        return asyncio.run(run(args.owner, args.open_query))
    except Exception as e:
        logger.error(f"Listing repositories failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
