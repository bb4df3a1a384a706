"""
Risk classification of projected spend against a budget limit.
"""

import math
from typing import Iterable, Optional

from forecast_models import RiskLevel

DEFAULT_MEDIUM_THRESHOLD = 0.85
DEFAULT_HIGH_THRESHOLD = 1.0


def spend_ratio(projected_spend: float, budget_limit: float, current_spend: float) -> float:
    """
    Ratio of projected spend to the limit.

    A zero limit has no meaningful ratio: any actual spend is infinite
    overrun, no spend is a ratio of zero.
    """
    if budget_limit <= 0:
        return math.inf if current_spend > 0 else 0.0
    return projected_spend / budget_limit


def classify_risk(
    ratio: float,
    medium_threshold: float = DEFAULT_MEDIUM_THRESHOLD,
    high_threshold: float = DEFAULT_HIGH_THRESHOLD
) -> RiskLevel:
    """Map a spend ratio to a risk level; each band includes its lower bound."""
    if ratio >= high_threshold:
        return RiskLevel.HIGH
    if ratio >= medium_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def highest_risk(levels: Iterable[RiskLevel]) -> Optional[RiskLevel]:
    """Return the most severe risk level, or None for an empty iterable."""
    return max(levels, key=lambda level: level.rank, default=None)
