"""Condition bucket arithmetic.

Equipment and checkout records describe their units as a mapping from a
condition bucket to a count. Every mapping that crosses a service boundary
goes through :func:`normalize_counts`, which drops zero entries and rejects
unknown buckets or non-integer values, so the rest of the ledger can add and
subtract mappings without re-checking their shape.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from avdesk.errors import ValidationFailed

# Priority order, highest first. Breaks ties in dominant_condition.
CONDITIONS: tuple[str, ...] = ("excellent", "good", "fair", "bad", "damaged")
CATEGORIES: tuple[str, ...] = (
    "audio",
    "video",
    "lighting",
    "presentation",
    "cables_accessories",
    "other",
)
DEFAULT_CONDITION = "good"
PIN_PATTERN = re.compile(r"[0-9]{4}")

ConditionCounts = dict[str, int]


def normalize_counts(raw: Mapping[str, Any] | None) -> ConditionCounts:
    """Validate a condition mapping and drop zero entries.

    Parameters
    ----------
    raw : Mapping[str, Any] | None
        Candidate mapping from condition bucket to count.

    Returns
    -------
    ConditionCounts
        Mapping restricted to positive counts, in priority order.
    """
    if raw is None or not isinstance(raw, Mapping):
        raise ValidationFailed("condition_counts must be an object")
    counts: ConditionCounts = {}
    for key, value in raw.items():
        if key not in CONDITIONS:
            raise ValidationFailed(
                f"Unknown condition '{key}'; expected one of {', '.join(CONDITIONS)}"
            )
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationFailed(
                f"Count for '{key}' must be a non-negative integer"
            )
    for condition in CONDITIONS:
        value = raw.get(condition, 0)
        if value:
            counts[condition] = value
    return counts


def total(counts: Mapping[str, int]) -> int:
    """Return the number of units described by a mapping."""
    return sum(counts.values())


def add_counts(base: Mapping[str, int], extra: Mapping[str, int]) -> ConditionCounts:
    """Return the per-bucket sum of two mappings."""
    merged = {
        condition: base.get(condition, 0) + extra.get(condition, 0)
        for condition in CONDITIONS
    }
    return {condition: value for condition, value in merged.items() if value}


def subtract_counts(
    base: Mapping[str, int], taken: Mapping[str, int]
) -> ConditionCounts:
    """Return ``base`` minus ``taken`` per bucket, floored at zero."""
    remaining = {
        condition: max(0, base.get(condition, 0) - taken.get(condition, 0))
        for condition in CONDITIONS
    }
    return {condition: value for condition, value in remaining.items() if value}


def shortfalls(
    available: Mapping[str, int], requested: Mapping[str, int]
) -> list[tuple[str, int, int]]:
    """List buckets where a request exceeds what is on hand.

    Parameters
    ----------
    available : Mapping[str, int]
        On-hand counts.
    requested : Mapping[str, int]
        Requested counts.

    Returns
    -------
    list[tuple[str, int, int]]
        ``(condition, on_hand, requested)`` for each short bucket.
    """
    return [
        (condition, available.get(condition, 0), wanted)
        for condition, wanted in requested.items()
        if wanted > available.get(condition, 0)
    ]


def dominant_condition(counts: Mapping[str, int]) -> str:
    """Return the bucket with the highest count.

    Ties go to the better condition (``CONDITIONS`` order). An empty or
    all-zero mapping yields ``good``.
    """
    best = DEFAULT_CONDITION
    best_count = 0
    for condition in CONDITIONS:
        count = counts.get(condition, 0)
        if count > best_count:
            best, best_count = condition, count
    return best


def validate_pin(pin: str) -> str:
    """Return a stripped PIN or raise when it is not exactly four digits."""
    candidate = (pin or "").strip()
    if not PIN_PATTERN.fullmatch(candidate):
        raise ValidationFailed("PIN must be exactly 4 digits")
    return candidate
