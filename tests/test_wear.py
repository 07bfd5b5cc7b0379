"""Unit tests for wear percentages, severity bands and garage aggregation."""

from types import SimpleNamespace

import pytest

from services import wear
from services.errors import InvalidInput


def _component(current, replacement):
    return SimpleNamespace(current_distance=current, replacement_distance=replacement)


def test_usage_percent_is_ratio_times_hundred():
    assert wear.usage_percent(1500, 3000) == pytest.approx(50.0)
    assert wear.usage_percent(2850, 3000) == pytest.approx(95.0)


def test_usage_percent_is_not_clamped_for_overdue_parts():
    assert wear.usage_percent(4500, 3000) == pytest.approx(150.0)
    assert wear.display_percent(150.0) == 100.0
    assert wear.display_percent(-5.0) == 0.0


def test_usage_percent_treats_missing_current_as_zero():
    assert wear.usage_percent(None, 3000) == 0.0


@pytest.mark.parametrize("replacement", [0, -10, None])
def test_usage_percent_rejects_non_positive_threshold(replacement):
    with pytest.raises(InvalidInput):
        wear.usage_percent(100, replacement)


@pytest.mark.parametrize(
    "usage,expected",
    [
        (0.0, "good"),
        (69.99, "good"),
        (70.0, "warning"),
        (89.99, "warning"),
        (90.0, "critical"),
        (150.0, "critical"),
    ],
)
def test_severity_bands_are_inclusive_on_lower_bound(usage, expected):
    assert wear.severity(usage) == expected


@pytest.mark.parametrize(
    "usage,expected",
    [
        (0.0, "excellent"),
        (29.99, "excellent"),
        (30.0, "good"),
        (75.0, "warning"),
        (95.0, "critical"),
    ],
)
def test_condition_band_splits_good_at_thirty(usage, expected):
    assert wear.condition_band(usage) == expected


def test_remaining_distance_never_negative():
    assert wear.remaining_distance(1000, 3000) == 2000
    assert wear.remaining_distance(3500, 3000) == 0


def test_aggregate_of_empty_garage_is_perfect():
    cond = wear.aggregate_condition([])
    assert cond.average_condition == 100
    assert cond.component_count == 0
    assert cond.breakdown == {"critical": 0, "warning": 0, "good": 0, "excellent": 0}


def test_aggregate_single_fully_worn_component():
    cond = wear.aggregate_condition([_component(3000, 3000)])
    assert cond.average_condition == 0
    assert cond.breakdown["critical"] == 1


def test_aggregate_overdue_component_contributes_zero_not_negative():
    cond = wear.aggregate_condition([_component(4500, 3000), _component(0, 3000)])
    # (0 + 100) / 2
    assert cond.average_condition == pytest.approx(50.0)
    assert cond.breakdown == {"critical": 1, "warning": 0, "good": 0, "excellent": 1}


def test_aggregate_counts_every_band():
    cond = wear.aggregate_condition([
        _component(100, 1000),   # 10%
        _component(500, 1000),   # 50%
        _component(800, 1000),   # 80%
        _component(950, 1000),   # 95%
    ])
    assert cond.component_count == 4
    assert cond.breakdown == {"critical": 1, "warning": 1, "good": 1, "excellent": 1}
    assert cond.average_condition == pytest.approx((90 + 50 + 20 + 5) / 4)
