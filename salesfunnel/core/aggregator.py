"""Summary statistics over a batch of funnel entries.

Entries can be plain mappings (JSON rows) or objects exposing the same
attributes (ORM rows). Missing or non-numeric amounts count as zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .stages import CLOSED_WON
from .validator import parse_number


@dataclass
class StageRollup:
    stage: str | None
    deal_count: int = 0
    total_value: float = 0.0
    total_expected_revenue: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "dealCount": self.deal_count,
            "totalValue": self.total_value,
            "totalExpectedRevenue": self.total_expected_revenue,
        }


@dataclass
class FunnelStats:
    total_revenue: float = 0.0
    deals_won: int = 0
    pipeline_value: float = 0.0
    conversion_rate: int = 0
    stages: list[StageRollup] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRevenue": self.total_revenue,
            "dealsWon": self.deals_won,
            "pipelineValue": self.pipeline_value,
            "conversionRate": self.conversion_rate,
            "stages": [rollup.to_dict() for rollup in self.stages],
        }


def _get(entry: Any, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def _amount(entry: Any, name: str) -> float:
    return parse_number(_get(entry, name)) or 0.0


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    # half-up, not banker's rounding: 12.5 -> 13
    return int(math.floor(part / whole * 100 + 0.5))


def summarize(entries: Iterable[Any]) -> FunnelStats:
    """Aggregate entries into dashboard figures and per-stage rollups."""
    stats = FunnelStats()
    rollups: dict[Any, StageRollup] = {}
    total = 0

    for entry in entries:
        total += 1
        stage = _get(entry, "stage")
        value = _amount(entry, "value")
        revenue = _amount(entry, "expected_revenue")

        stats.pipeline_value += value
        if stage == CLOSED_WON:
            stats.deals_won += 1
            stats.total_revenue += revenue

        rollup = rollups.get(stage)
        if rollup is None:
            rollup = rollups[stage] = StageRollup(stage=stage)
        rollup.deal_count += 1
        rollup.total_value += value
        rollup.total_expected_revenue += revenue

    stats.conversion_rate = _percent(stats.deals_won, total)
    stats.stages = list(rollups.values())
    return stats
