"""Tests for the statistics helpers."""

from __future__ import annotations

import pytest

from repoprofile.stats import (
    average_pairwise_jaccard,
    discrete_consistency,
    dominant_trend,
    gini_coefficient,
    jaccard_similarity,
    linear_regression_slope,
    most_common,
    trend_direction,
)


def test_jaccard_is_symmetric_and_defined_for_empty_sets() -> None:
    first = {"python", "go"}
    second = {"go", "rust", "java"}

    assert jaccard_similarity(first, second) == pytest.approx(0.25)
    assert jaccard_similarity(second, first) == jaccard_similarity(first, second)
    assert jaccard_similarity(first, first) == 1.0
    assert jaccard_similarity(set(), set()) == 1.0
    assert jaccard_similarity({"a"}, set()) == 0.0


def test_average_pairwise_jaccard_scores_out_of_hundred() -> None:
    assert average_pairwise_jaccard([{"a"}]) == 100.0
    assert average_pairwise_jaccard([{"a"}, {"a"}, {"a"}]) == 100.0
    assert average_pairwise_jaccard([{"a"}, {"b"}]) == 0.0
    # pairs: (ab, a)=0.5, (ab, b)=0.5, (a, b)=0
    assert average_pairwise_jaccard([{"a", "b"}, {"a"}, {"b"}]) == pytest.approx(100 / 3)


def test_discrete_consistency_uses_majority_fraction() -> None:
    assert discrete_consistency([]) == 100.0
    assert discrete_consistency(["spaces"]) == 100.0
    assert discrete_consistency(["spaces", "spaces", "tabs", "spaces"]) == 75.0
    assert discrete_consistency([2, 4]) == 50.0


def test_most_common_prefers_first_seen_on_ties() -> None:
    assert most_common([]) is None
    assert most_common(["LF", "CRLF", "CRLF"]) == "CRLF"
    assert most_common(["tabs", "spaces"]) == "tabs"


def test_gini_coefficient_bounds() -> None:
    assert gini_coefficient([]) == 0.0
    assert gini_coefficient([0, 0]) == 0.0
    assert gini_coefficient([5, 5, 5, 5]) == 0.0
    assert gini_coefficient([0, 10]) == pytest.approx(0.5)
    assert gini_coefficient([0, 0, 0, 0, 0, 0, 0, 0, 0, 100]) == pytest.approx(0.9)


def test_linear_regression_slope() -> None:
    assert linear_regression_slope([]) == 0.0
    assert linear_regression_slope([3]) == 0.0
    assert linear_regression_slope([1, 2, 3, 4]) == pytest.approx(1.0)
    assert linear_regression_slope([10, 8, 6]) == pytest.approx(-2.0)


def test_trend_direction_respects_orientation() -> None:
    assert trend_direction([5, 5, 5]) == "stable"
    assert trend_direction([1, 1.02, 1.04]) == "stable"
    assert trend_direction([10, 20, 30]) == "declining"
    assert trend_direction([30, 20, 10]) == "improving"
    assert trend_direction([10, 20, 30], higher_is_better=True) == "improving"


def test_dominant_trend_requires_strict_majority() -> None:
    assert dominant_trend(["improving", "improving", "stable"]) == "improving"
    assert dominant_trend(["declining", "declining", "improving"]) == "declining"
    assert dominant_trend(["improving", "declining"]) == "stable"
    assert dominant_trend(["improving", "stable"]) == "stable"
    assert dominant_trend([]) == "stable"
