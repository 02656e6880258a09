"""Score arithmetic: difficulty + execution - deductions, clamped at zero.

Values are kept as ``Decimal`` at full precision. Rounding only happens in
``display()``, which mirrors the one-decimal convention used on score sheets.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any


MAX_COMPONENT_SCORE = Decimal("10")
ZERO = Decimal("0")


class ScoreOutOfRange(ValueError):
    """A score component is missing, malformed or outside its bounds."""

    def __init__(self, field: str, constraint: str):
        super().__init__(f"{field} {constraint}")
        self.field = field
        self.constraint = constraint


@dataclass(frozen=True)
class ScoreBreakdown:
    difficulty: Decimal
    execution: Decimal
    deductions: Decimal
    final: Decimal


def to_decimal(value: Any, field: str) -> Decimal:
    """Coerce a numeric input (int, float, str or Decimal) to a finite Decimal."""
    if value is None or isinstance(value, bool):
        raise ScoreOutOfRange(field, "must be a number")
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ScoreOutOfRange(field, "must be a finite number")
        # str() keeps 9.2 as 9.2 instead of its binary expansion
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ScoreOutOfRange(field, "must be a number")
        try:
            parsed = Decimal(stripped)
        except InvalidOperation:
            raise ScoreOutOfRange(field, "must be a number") from None
    else:
        raise ScoreOutOfRange(field, "must be a number")
    if not parsed.is_finite():
        raise ScoreOutOfRange(field, "must be a finite number")
    return parsed


def _check_component(value: Decimal, field: str, upper: Decimal) -> None:
    if value < ZERO or value > upper:
        raise ScoreOutOfRange(field, f"must be between 0 and {upper}")


def compute_breakdown(
    difficulty: Any,
    execution: Any,
    deductions: Any = ZERO,
    *,
    max_component: Decimal = MAX_COMPONENT_SCORE,
) -> ScoreBreakdown:
    d = to_decimal(difficulty, "difficulty")
    e = to_decimal(execution, "execution")
    ded = to_decimal(deductions, "deductions")
    _check_component(d, "difficulty", max_component)
    _check_component(e, "execution", max_component)
    if ded < ZERO:
        raise ScoreOutOfRange("deductions", "must be greater than or equal to 0")
    # ded >= 0 keeps the result at or below d + e
    final = max(ZERO, d + e - ded)
    return ScoreBreakdown(difficulty=d, execution=e, deductions=ded, final=final)


def compute(
    difficulty: Any,
    execution: Any,
    deductions: Any = ZERO,
    *,
    max_component: Decimal = MAX_COMPONENT_SCORE,
) -> Decimal:
    """Return the final score for one routine.

    Raises:
        ScoreOutOfRange: difficulty or execution outside [0, max_component],
            negative deductions, or a non-numeric input.

    Examples:
        - compute(5.0, 8.5, 1.0) -> Decimal("12.5")
        - compute(2.0, 3.0, 10.0) -> Decimal("0")  (clamped)
    """
    return compute_breakdown(
        difficulty, execution, deductions, max_component=max_component
    ).final


def display(value: Decimal | float | int | None, places: int = 1) -> str:
    """Format a score for display, rounding half-up ("12.45" -> "12.5")."""
    if value is None:
        return ""
    quantum = Decimal(1).scaleb(-places)
    rounded = to_decimal(value, "value").quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded == ZERO:
        # avoid "-0.0"
        rounded = abs(rounded)
    return f"{rounded:.{places}f}"
