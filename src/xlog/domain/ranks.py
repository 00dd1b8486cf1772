"""Rank curve — square-root mapping from XP to nine named tiers.

``level_float = sqrt(xp / XP_MAX) * 8`` so early XP climbs ranks quickly
and later ranks need disproportionately more. The curve is fixed.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

XP_MAX = 109500.0
MAX_LEVEL = 8

RANK_NAMES: tuple[str, ...] = (
    "Rookie",
    "Explorer",
    "Crafter",
    "Strategist",
    "Expert",
    "Architect",
    "Elite",
    "Master",
    "Legend",
)


class Rank(BaseModel):
    """Position of an XP value on the rank curve."""

    model_config = {"frozen": True}

    xp: float
    level: int
    fraction: float
    name: str
    level_xp: float
    next_level_xp: float
    xp_to_next: float


def xp_for_level(level: int) -> float:
    """Minimum XP at which *level* is reached."""
    level = min(max(level, 0), MAX_LEVEL)
    return (level / MAX_LEVEL) ** 2 * XP_MAX


def level_float(xp: float) -> float:
    """Unclamped position on the curve; non-positive XP maps to 0."""
    if xp <= 0:
        return 0.0
    return math.sqrt(xp / XP_MAX) * MAX_LEVEL


def compute_rank(xp: float) -> Rank:
    """Map *xp* (profile or single-domain) to level, fraction, and rank name."""
    lf = level_float(xp)
    level = min(MAX_LEVEL, max(0, int(lf)))
    fraction = 1.0 if level == MAX_LEVEL else lf - level
    next_xp = xp_for_level(level + 1) if level < MAX_LEVEL else XP_MAX
    return Rank(
        xp=xp,
        level=level,
        fraction=fraction,
        name=RANK_NAMES[level],
        level_xp=xp_for_level(level),
        next_level_xp=next_xp,
        xp_to_next=0.0 if level == MAX_LEVEL else max(next_xp - xp, 0.0),
    )
