"""Pure rule engine: validation, derived metrics, aggregation."""

from .aggregator import FunnelStats, StageRollup, summarize
from .metrics import enrich, enrich_patch, expected_revenue
from .stages import STAGES, stage_badge_class
from .validator import FIELDS, ValidationResult, validate_entry

__all__ = [
    "FIELDS",
    "STAGES",
    "FunnelStats",
    "StageRollup",
    "ValidationResult",
    "enrich",
    "enrich_patch",
    "expected_revenue",
    "stage_badge_class",
    "summarize",
    "validate_entry",
]
