"""Shared fixtures: fixed clock, in-memory store, repository factory."""

from datetime import datetime, timedelta, timezone

import pytest

from repo_ranker.domain.repository import Repository
from repo_ranker.domain.scoring import calculate_usage_score
from repo_ranker.infrastructure.storage import InMemoryKeyValueStore

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def make_repo():
    """Build a Repository whose usage score is computed against NOW unless given."""

    def _make(repo_id, stars=0, updated_at=NOW, pushed_at=None, owner="octocat", usage_score=None, **kwargs):
        pushed_at = pushed_at or updated_at
        if usage_score is None:
            usage_score = calculate_usage_score(stars, updated_at, pushed_at, NOW)
        return Repository(
            id=repo_id,
            name=f"repo-{repo_id}",
            owner=owner,
            full_name=f"{owner}/repo-{repo_id}",
            url=f"https://github.com/{owner}/repo-{repo_id}",
            stars=stars,
            updated_at=updated_at,
            pushed_at=pushed_at,
            usage_score=usage_score,
            **kwargs,
        )

    return _make
