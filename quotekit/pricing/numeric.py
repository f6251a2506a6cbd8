"""
Numeric helpers shared by the curtains and tile engines.

Everything here is plain float arithmetic. Nothing rounds: rounding is a
presentation concern (see pdf_generator.format_currency).
"""

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def percentage_of(amount: float, pct: float) -> float:
    """amount × pct/100"""
    return amount * (pct / 100.0)


def with_percentage(amount: float, pct: float) -> float:
    """amount grown by pct percent: amount × (1 + pct/100)."""
    return amount * (1 + pct / 100.0)


def clamp(value: float, low: float, high: float) -> float:
    """Constrain value to [low, high]. If high < low, low wins."""
    return max(low, min(value, high))


def positive_or_zero(value) -> float:
    """Non-positive (or missing) inputs have no effect and collapse to 0."""
    if value is None or value <= 0:
        return 0.0
    return float(value)


def sum_by(items: Iterable[T], fn: Callable[[T], float]) -> float:
    """Sum fn(item) over items. Empty input sums to 0.0."""
    total = 0.0
    for item in items:
        total += fn(item)
    return total
