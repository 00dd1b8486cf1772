"""Aggregate profile XP and profile horizon arithmetic.

Profile XP is the geometric mean of the four domain XP sums, so a profile
only ranks up when every domain grows.

INVARIANT: profile XP is always a finite, non-negative float. Domain sums
are clamped to zero before the mean, so a zero or negative domain (possible
after overdue penalties) yields 0.0 instead of NaN.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date

DOMAIN_COUNT = 4


def pad_domain_sums(sums: Sequence[float]) -> list[float]:
    """Return exactly four domain sums, missing domains counted as 0."""
    padded = [float(s) for s in sums[:DOMAIN_COUNT]]
    padded.extend([0.0] * (DOMAIN_COUNT - len(padded)))
    return padded


def profile_xp(domain_sums: Sequence[float]) -> float:
    """Geometric mean of the four domain sums, each clamped to >= 0."""
    clamped = [max(s, 0.0) for s in pad_domain_sums(domain_sums)]
    if any(s == 0.0 for s in clamped):
        return 0.0
    # log-space avoids overflow of the raw product on very large totals
    return math.exp(sum(math.log(s) for s in clamped) / DOMAIN_COUNT)


def add_years(start: date, years: int) -> date:
    """Shift *start* by whole years; Feb 29 falls back to Feb 28."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


def days_remaining(created_at: date, today: date, horizon_years: int) -> int:
    """Days left until the profile horizon (negative once it has passed)."""
    return (add_years(created_at, horizon_years) - today).days


def days_elapsed(created_at: date, today: date) -> int:
    """Days since the profile was created."""
    return (today - created_at).days
