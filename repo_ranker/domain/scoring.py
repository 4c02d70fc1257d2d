"""Usage score for repositories: stars plus exponentially decaying recency."""

import math
from datetime import datetime

DEFAULT_DECAY_DAYS = 30.0
DEFAULT_STAR_WEIGHT = 2.0

# Points contributed by each recency term at zero elapsed time
RECENCY_POINTS = 100.0

SECONDS_PER_DAY = 60 * 60 * 24


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days elapsed from start to end (negative if start is after end)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def recency_score(timestamp: datetime, now: datetime, decay_days: float = DEFAULT_DECAY_DAYS) -> float:
    # Timestamps ahead of now (clock skew) count as zero elapsed time
    elapsed = max(days_between(timestamp, now), 0.0)
    return math.exp(-elapsed / decay_days) * RECENCY_POINTS


def calculate_usage_score(
    stars: int,
    updated_at: datetime,
    pushed_at: datetime,
    now: datetime,
    *,
    decay_days: float = DEFAULT_DECAY_DAYS,
    star_weight: float = DEFAULT_STAR_WEIGHT,
) -> float:
    """
    Calculate a usage score from stars and recent activity.

    Each of updated_at and pushed_at contributes up to 100 points, decaying
    exponentially with a characteristic scale of decay_days. Stars are added
    linearly, multiplied by star_weight. Scores are only meaningful relative
    to each other; there is no upper bound.

    Args:
        stars: Stargazer count (must be non-negative)
        updated_at: Last metadata update of the repository
        pushed_at: Last push to the repository
        now: Reference instant the ages are measured against
        decay_days: Characteristic decay scale in days
        star_weight: Points per star

    Returns:
        Finite usage score
    """
    if stars < 0:
        raise ValueError(f"stars must be non-negative, got {stars}")
    if decay_days <= 0:
        raise ValueError(f"decay_days must be positive, got {decay_days}")

    recency = recency_score(updated_at, now, decay_days) + recency_score(pushed_at, now, decay_days)
    return stars * star_weight + recency
