"""Domain entities for GitHub repositories."""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))


def from_epoch_ms(value: float) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (GitHub uses a trailing 'Z') into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Repository:
    """Immutable repository entity."""

    id: str
    name: str
    owner: str
    full_name: str
    url: str
    stars: int
    updated_at: datetime
    pushed_at: datetime
    description: Optional[str] = None
    is_private: bool = False
    language: Optional[str] = None
    usage_score: float = 0.0

    def with_usage_score(self, score: float) -> "Repository":
        return replace(self, usage_score=score)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON-ready shape stored in the repository cache."""
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "full_name": self.full_name,
            "description": self.description,
            "url": self.url,
            "stars": self.stars,
            "is_private": self.is_private,
            "language": self.language,
            "updated_at": self.updated_at.isoformat(),
            "pushed_at": self.pushed_at.isoformat(),
            "usage_score": self.usage_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Repository":
        updated_at = parse_timestamp(data["updated_at"])
        pushed_raw = data.get("pushed_at")
        usage_score = float(data.get("usage_score", 0.0))
        if not math.isfinite(usage_score):
            raise ValueError(f"usage_score is not finite: {usage_score!r}")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            owner=data.get("owner") or "",
            full_name=data["full_name"],
            description=data.get("description"),
            url=data["url"],
            stars=int(data.get("stars") or 0),
            is_private=bool(data.get("is_private", False)),
            language=data.get("language"),
            updated_at=updated_at,
            pushed_at=parse_timestamp(pushed_raw) if pushed_raw else updated_at,
            usage_score=usage_score,
        )
