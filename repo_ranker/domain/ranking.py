"""Ordering of repositories by last access, then usage score."""

from datetime import datetime, timezone
from typing import Iterable, List, Mapping

from repo_ranker.domain.repository import Repository

# Never-accessed repositories sort as if last accessed at the epoch
NEVER_ACCESSED = datetime(1970, 1, 1, tzinfo=timezone.utc)


def rank_repositories(
    repositories: Iterable[Repository],
    access_times: Mapping[str, datetime],
) -> List[Repository]:
    """
    Order repositories with recently accessed ones first.

    This is a strict two-tier sort, not a weighted blend: a strictly more
    recent access always wins regardless of usage score. Only exactly equal
    access times (including two never-accessed repositories) fall back to
    usage score, highest first. Equal keys keep their input order.

    Args:
        repositories: Repositories to order (not modified)
        access_times: Repository id -> last access instant

    Returns:
        New list with the same repositories, ranked
    """
    def sort_key(repo: Repository):
        accessed_at = access_times.get(repo.id, NEVER_ACCESSED)
        return (accessed_at.timestamp(), repo.usage_score)

    # sorted() stays stable under reverse=True
    return sorted(repositories, key=sort_key, reverse=True)
