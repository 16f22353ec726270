"""
Scorer — pure scoring of one outcome event against one candidate action.

Every function here takes already-resolved values (timestamps, window
length, surface set) and never touches the event store.
"""

from datetime import datetime, timezone
from typing import AbstractSet


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_between(a: datetime, b: datetime) -> float:
    return abs((as_utc(a) - as_utc(b)).total_seconds()) / 3600.0


def time_proximity_score(
    event_time: datetime, action_time: datetime, window_hours: float
) -> float:
    """
    1.0 at zero distance, decaying linearly to 0.0 at the window edge.
    Anything at or beyond the window scores 0.0.
    """
    if window_hours <= 0:
        return 0.0
    diff_hours = hours_between(event_time, action_time)
    if diff_hours >= window_hours:
        return 0.0
    return 1.0 - (diff_hours / window_hours)


def surface_match_score(
    metric_key: str,
    surfaced_metrics: AbstractSet[str],
    fallback: float = 0.3,
) -> float:
    """1.0 when the action type is known to move the metric, else the weak fallback."""
    if metric_key in surfaced_metrics:
        return 1.0
    return fallback


def combine_confidence(
    time_score: float,
    surface_score: float,
    time_weight: float = 0.4,
    surface_weight: float = 0.6,
) -> float:
    confidence = time_weight * time_score + surface_weight * surface_score
    return max(0.0, min(1.0, confidence))
