"""Tests for descriptive statistics and Welch's t-test."""

from __future__ import annotations

import math

import pytest
from scipy import stats as sp_stats

from perfbaseline.errors import EmptySampleSetError
from perfbaseline.stats import QualityRating, summarize, welch_t_test

BASELINE = [100.0, 102.0, 98.0, 101.0, 99.0]
REGRESSED = [140.0, 138.0, 142.0, 139.0, 141.0]


def test_summarize_basic_values() -> None:
    stats = summarize(BASELINE)
    assert stats.count == 5
    assert stats.mean == pytest.approx(100.0)
    assert stats.std_dev == pytest.approx(math.sqrt(2.5))
    assert stats.median == 100.0
    assert stats.min == 98.0
    assert stats.max == 102.0
    assert stats.coefficient_of_variation == pytest.approx(math.sqrt(2.5) / 100.0)
    assert stats.quality is QualityRating.EXCELLENT


def test_summarize_confidence_interval_uses_student_t() -> None:
    stats = summarize(BASELINE)
    margin = sp_stats.t.ppf(0.975, 4) * math.sqrt(2.5) / math.sqrt(5)
    assert stats.ci95.lower == pytest.approx(100.0 - margin)
    assert stats.ci95.upper == pytest.approx(100.0 + margin)


def test_summarize_single_sample_has_zero_std() -> None:
    stats = summarize([12.5])
    assert stats.std_dev == 0.0
    assert stats.mean == 12.5
    assert stats.ci95.lower == stats.ci95.upper == 12.5


def test_summarize_constant_series_has_zero_std() -> None:
    stats = summarize([3.0, 3.0, 3.0, 3.0])
    assert stats.std_dev == 0.0
    assert stats.coefficient_of_variation == 0.0


def test_summarize_mean_stays_within_range() -> None:
    values = [0.1] * 7
    stats = summarize(values)
    assert stats.min <= stats.mean <= stats.max


def test_summarize_median_interpolates_even_count() -> None:
    assert summarize([1.0, 2.0, 3.0, 4.0]).median == 2.5


def test_summarize_zero_mean_has_zero_cv() -> None:
    assert summarize([0.0, 0.0]).coefficient_of_variation == 0.0


def test_summarize_rejects_empty_series() -> None:
    with pytest.raises(EmptySampleSetError, match="PB_EMPTY_SAMPLE_SET"):
        summarize([])


@pytest.mark.parametrize(
    ("cv", "expected"),
    [
        (0.0, QualityRating.EXCELLENT),
        (0.049, QualityRating.EXCELLENT),
        (0.05, QualityRating.GOOD),
        (0.1, QualityRating.FAIR),
        (0.2, QualityRating.POOR),
    ],
)
def test_quality_rating_buckets(cv: float, expected: QualityRating) -> None:
    assert QualityRating.from_cv(cv) is expected


def test_summary_matches_tolerates_rounding_only() -> None:
    stats = summarize(BASELINE)
    assert stats.matches(summarize(list(reversed(BASELINE))))
    assert not stats.matches(summarize(REGRESSED))


def test_welch_t_test_known_values() -> None:
    result = welch_t_test(summarize(REGRESSED), summarize(BASELINE))
    assert result.mean_difference == pytest.approx(40.0)
    assert result.standard_error == pytest.approx(1.0)
    assert result.t_statistic == pytest.approx(40.0)
    assert result.degrees_of_freedom == pytest.approx(8.0)
    assert result.p_value < 1e-9

    t_crit = sp_stats.t.ppf(0.975, 8.0)
    assert result.confidence_interval.lower == pytest.approx(40.0 - t_crit)
    assert result.confidence_interval.upper == pytest.approx(40.0 + t_crit)


def test_welch_t_test_is_one_tailed() -> None:
    faster = welch_t_test(summarize(BASELINE), summarize(REGRESSED))
    assert faster.t_statistic < 0
    assert faster.p_value > 0.999


def test_welch_t_test_identical_means_gives_half() -> None:
    result = welch_t_test(summarize(BASELINE), summarize(BASELINE))
    assert result.t_statistic == 0.0
    assert result.p_value == pytest.approx(0.5)
