"""Half-open interval arithmetic: ``[start, end)``.

Times of day are compared as minutes since midnight so that a window ending
at midnight stays representable. Touching intervals never overlap.
"""

from __future__ import annotations

from datetime import time
from typing import Optional, Tuple, TypeVar

T = TypeVar("T", int, time)

MINUTES_PER_DAY = 24 * 60


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    return a_start < b_end and b_start < a_end


def intersect(a_start: T, a_end: T, b_start: T, b_end: T) -> Optional[Tuple[T, T]]:
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    if start >= end:
        return None
    return start, end


def contains(outer_start: T, outer_end: T, inner_start: T, inner_end: T) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def reservation_interval(start: time, duration: int) -> Tuple[int, int]:
    """Return ``[start, start + duration)`` in minutes since midnight."""
    begin = to_minutes(start)
    return begin, begin + duration
