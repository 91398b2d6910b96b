"""Derived deal metrics."""

from __future__ import annotations

from typing import Any, Mapping

from .validator import parse_number


def expected_revenue(value: Any, probability: Any) -> float | None:
    """Probability-weighted deal value, or None when it cannot be derived.

    Both inputs must be finite and non-zero; ``probability`` must also lie in
    [0, 100]. A zero probability leaves the caller's figure in place.
    """
    amount = parse_number(value)
    pct = parse_number(probability)
    if not amount or not pct or amount < 0 or not 0 < pct <= 100:
        return None
    return amount * (pct / 100)


def enrich(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``record`` with ``expected_revenue`` re-derived."""
    enriched = dict(record)
    derived = expected_revenue(record.get("value"), record.get("probability"))
    if derived is not None:
        enriched["expected_revenue"] = derived
    return enriched


def enrich_patch(current: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    """Re-derive ``expected_revenue`` for a partial update.

    Only patches touching ``value`` or ``probability`` are recomputed; the
    inputs are taken from ``current`` merged with ``patch``.
    """
    enriched = dict(patch)
    if "value" not in patch and "probability" not in patch:
        return enriched
    merged = {**current, **patch}
    derived = expected_revenue(merged.get("value"), merged.get("probability"))
    if derived is not None:
        enriched["expected_revenue"] = derived
    return enriched
