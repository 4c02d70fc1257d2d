"""Application service fetching repositories from GitHub and scoring them."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from repo_ranker.domain.repository import Repository, parse_timestamp, utc_now
from repo_ranker.domain.scoring import (
    DEFAULT_DECAY_DAYS,
    DEFAULT_STAR_WEIGHT,
    calculate_usage_score,
)
from repo_ranker.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)


def repository_from_payload(node: Dict[str, Any]) -> Repository:
    """Map one GitHub REST repository object onto the domain entity (usage score unset)."""
    updated_at = parse_timestamp(node["updated_at"])
    pushed_raw = node.get("pushed_at")
    owner = (node.get("owner") or {}).get("login") or ""

    return Repository(
        id=str(node["id"]),
        name=node["name"],
        owner=owner,
        full_name=node["full_name"],
        description=node.get("description"),
        url=node["html_url"],
        stars=node.get("stargazers_count") or 0,
        is_private=bool(node.get("private", False)),
        language=node.get("language"),
        updated_at=updated_at,
        pushed_at=parse_timestamp(pushed_raw) if pushed_raw else updated_at,
    )


class RepositoryService:
    """Service for fetching a user's repositories and attaching usage scores."""

    def __init__(
        self,
        github_client: GitHubRestClient,
        decay_days: float = DEFAULT_DECAY_DAYS,
        star_weight: float = DEFAULT_STAR_WEIGHT,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize repository service.

        Args:
            github_client: GitHub API client
            decay_days: Recency decay scale passed to the usage score
            star_weight: Star weight passed to the usage score
            clock: Source of the reference instant for scoring
        """
        self.github_client = github_client
        self.decay_days = decay_days
        self.star_weight = star_weight
        self.clock = clock

    def score_repositories(
        self, nodes: Iterable[Dict[str, Any]], now: Optional[datetime] = None
    ) -> List[Repository]:
        """
        Convert raw payloads to scored repositories, highest usage score first.

        Duplicate ids (pages shifting while paginating) keep their first occurrence.
        """
        now = now or self.clock()
        seen_repo_ids = set()
        duplicates = 0
        repositories: List[Repository] = []

        for node in nodes:
            repo = repository_from_payload(node)
            if repo.id in seen_repo_ids:
                duplicates += 1
                continue
            seen_repo_ids.add(repo.id)

            score = calculate_usage_score(
                repo.stars,
                repo.updated_at,
                repo.pushed_at,
                now,
                decay_days=self.decay_days,
                star_weight=self.star_weight,
            )
            repositories.append(repo.with_usage_score(score))

        if duplicates:
            logger.info(f"Dropped {duplicates} duplicate repositories")

        repositories.sort(key=lambda r: r.usage_score, reverse=True)
        return repositories

    async def fetch_repositories(self) -> List[Repository]:
        """Fetch every repository visible to the authenticated user, sorted by usage."""
        nodes = await asyncio.to_thread(self.github_client.list_repositories)
        repositories = self.score_repositories(nodes)
        logger.info(f"Fetched {len(repositories)} repositories")
        return repositories

    async def fetch_repositories_by_owner(self, owner: str) -> List[Repository]:
        """Fetch repositories of a specific owner/organization, sorted by usage."""
        nodes = await asyncio.to_thread(self.github_client.list_repositories_for_owner, owner)
        repositories = self.score_repositories(nodes)
        logger.info(f"Fetched {len(repositories)} repositories for {owner}")
        return repositories

    async def get_current_user(self) -> str:
        """Login of the authenticated user."""
        user = await asyncio.to_thread(self.github_client.get_authenticated_user)
        return user["login"]
