# group_builder/domain/statistics.py
"""
Pure aggregate metrics over a list of groups.

No state, no I/O. Every average is guarded so an empty list reports zeros.

Functions included:
- compatibility_bucket
- group_statistics
"""
from typing import List, Dict
import math

from group_builder.domain.models import Group

EXCELLENT_THRESHOLD = 85
GOOD_THRESHOLD = 70
MODERATE_THRESHOLD = 50


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def compatibility_bucket(score: float) -> str:
    """
    Classify an average compatibility score.

    Example:
    >>> compatibility_bucket(85)
    'excellent'
    >>> compatibility_bucket(69.9)
    'moderate'
    """
    if score >= EXCELLENT_THRESHOLD:
        return "excellent"
    if score >= GOOD_THRESHOLD:
        return "good"
    if score >= MODERATE_THRESHOLD:
        return "moderate"
    return "poor"


def group_statistics(groups: List[Group]) -> Dict:
    """
    Summarise the current arrangement.

    average_group_size is rounded to one decimal, average_compatibility to a
    whole number. Both are 0 when there are no groups.

    Example:
    >>> group_statistics([])["average_group_size"]
    0
    """
    total_groups = len(groups)
    total_participants = sum(len(g.participants) for g in groups)

    distribution = {"excellent": 0, "good": 0, "moderate": 0, "poor": 0}
    for g in groups:
        distribution[compatibility_bucket(g.compatibility.average_score)] += 1

    if total_groups:
        average_group_size = _round_half_up(total_participants / total_groups, 1)
        average_compatibility = int(_round_half_up(
            sum(g.compatibility.average_score for g in groups) / total_groups
        ))
    else:
        average_group_size = 0
        average_compatibility = 0

    return {
        "total_groups": total_groups,
        "total_participants": total_participants,
        "average_group_size": average_group_size,
        "average_compatibility": average_compatibility,
        "compatibility_distribution": distribution,
        "empty_groups": sum(1 for g in groups if not g.participants),
        "full_groups": sum(1 for g in groups if g.is_full()),
    }
