"""Small statistics helpers used by team analytics and the organization profiler."""

from __future__ import annotations

from collections import Counter
from itertools import combinations
from typing import AbstractSet, Hashable, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T", bound=Hashable)

TREND_IMPROVING = "improving"
TREND_STABLE = "stable"
TREND_DECLINING = "declining"

TREND_SLOPE_THRESHOLD = 0.05


def jaccard_similarity(first: AbstractSet[object], second: AbstractSet[object]) -> float:
    """Intersection over union; two empty sets are identical (1.0)."""
    if not first and not second:
        return 1.0
    union = first | second
    return len(first & second) / len(union)


def average_pairwise_jaccard(groups: Sequence[Iterable[object]]) -> float:
    """Mean Jaccard similarity over every pair, as a 0-100 score."""
    if len(groups) <= 1:
        return 100.0
    sets = [frozenset(group) for group in groups]
    scores = [jaccard_similarity(a, b) for a, b in combinations(sets, 2)]
    return sum(scores) / len(scores) * 100.0


def discrete_consistency(values: Sequence[Hashable]) -> float:
    """Percentage of values equal to the most common value."""
    if len(values) <= 1:
        return 100.0
    top = max(Counter(values).values())
    return top / len(values) * 100.0


def most_common(values: Iterable[T]) -> Optional[T]:
    """Most frequent value; ties go to the value seen first."""
    counts: Counter = Counter(values)
    if not counts:
        return None
    best: Optional[T] = None
    best_count = 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count
    return best


def gini_coefficient(values: Iterable[float]) -> float:
    """Inequality of ``values``: 0 is perfectly even, towards 1 is concentrated."""
    ordered = sorted(values)
    n = len(ordered)
    total = sum(ordered)
    if n == 0 or total == 0:
        return 0.0
    weighted = sum((2 * index - n + 1) * value for index, value in enumerate(ordered))
    return weighted / (n * total)


def linear_regression_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index."""
    n = len(values)
    if n < 2:
        return 0.0
    mean_x = (n - 1) / 2.0
    mean_y = sum(values) / n
    numerator = sum((index - mean_x) * (value - mean_y) for index, value in enumerate(values))
    denominator = sum((index - mean_x) ** 2 for index in range(n))
    if denominator == 0:
        return 0.0
    return numerator / denominator


def trend_direction(
    values: Sequence[float],
    *,
    higher_is_better: bool = False,
    threshold: float = TREND_SLOPE_THRESHOLD,
) -> str:
    """Classify a series as improving, stable or declining by its slope."""
    slope = linear_regression_slope(values)
    if abs(slope) <= threshold:
        return TREND_STABLE
    rising = slope > 0
    return TREND_IMPROVING if rising == higher_is_better else TREND_DECLINING


def dominant_trend(directions: Iterable[str]) -> str:
    """Improving or declining only when it strictly outnumbers both others."""
    counts = Counter(directions)
    improving = counts[TREND_IMPROVING]
    declining = counts[TREND_DECLINING]
    stable = counts[TREND_STABLE]
    if improving > stable and improving > declining:
        return TREND_IMPROVING
    if declining > stable and declining > improving:
        return TREND_DECLINING
    return TREND_STABLE


__all__ = [
    "TREND_DECLINING",
    "TREND_IMPROVING",
    "TREND_STABLE",
    "average_pairwise_jaccard",
    "discrete_consistency",
    "dominant_trend",
    "gini_coefficient",
    "jaccard_similarity",
    "linear_regression_slope",
    "most_common",
    "trend_direction",
]
