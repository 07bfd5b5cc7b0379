# services/wear.py
"""
Wear math for installed components.

Usage is kept unclamped: an overdue part reports more than 100 percent so
it still lands in the critical band. Only `display_percent` clamps.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable

from services.errors import InvalidInput

CRITICAL_THRESHOLD = 90.0
WARNING_THRESHOLD = 70.0
EXCELLENT_THRESHOLD = 30.0

CRITICAL = "critical"
WARNING = "warning"
GOOD = "good"
EXCELLENT = "excellent"

CONDITION_BANDS = (CRITICAL, WARNING, GOOD, EXCELLENT)


def usage_percent(current_distance: float, replacement_distance: float) -> float:
    if replacement_distance is None or replacement_distance <= 0:
        raise InvalidInput("replacement_distance must be positive")
    return (float(current_distance or 0) / float(replacement_distance)) * 100


def display_percent(usage: float) -> float:
    return max(0.0, min(100.0, usage))


def severity(usage: float) -> str:
    if usage >= CRITICAL_THRESHOLD:
        return CRITICAL
    if usage >= WARNING_THRESHOLD:
        return WARNING
    return GOOD


def condition_band(usage: float) -> str:
    """Like `severity`, with `good` split at 30 percent for garage grouping."""
    label = severity(usage)
    if label == GOOD and usage < EXCELLENT_THRESHOLD:
        return EXCELLENT
    return label


def remaining_condition(usage: float) -> float:
    return max(0.0, 100.0 - usage)


def remaining_distance(current_distance: float, replacement_distance: float) -> float:
    return max(0.0, float(replacement_distance) - float(current_distance or 0))


@dataclass
class GarageCondition:
    average_condition: float = 100.0
    component_count: int = 0
    breakdown: Dict[str, int] = field(default_factory=lambda: {band: 0 for band in CONDITION_BANDS})


def aggregate_condition(components: Iterable) -> GarageCondition:
    """
    Average remaining condition across components exposing `current_distance`
    and `replacement_distance`. No components means a perfect garage.
    """
    result = GarageCondition()
    total = 0.0
    for c in components:
        usage = usage_percent(c.current_distance, c.replacement_distance)
        total += remaining_condition(usage)
        result.breakdown[condition_band(usage)] += 1
        result.component_count += 1

    if result.component_count:
        result.average_condition = total / result.component_count
    return result
