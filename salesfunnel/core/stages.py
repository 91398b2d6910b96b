"""Deal stages and their display colours."""

from __future__ import annotations

PROSPECTING = "Prospecting"
QUALIFICATION = "Qualification"
PROPOSAL = "Proposal"
NEGOTIATION = "Negotiation"
CLOSED_WON = "Closed Won"
CLOSED_LOST = "Closed Lost"

STAGES: tuple[str, ...] = (
    PROSPECTING,
    QUALIFICATION,
    PROPOSAL,
    NEGOTIATION,
    CLOSED_WON,
    CLOSED_LOST,
)

_BADGE_CLASSES = {
    "prospecting": "badge-blue",
    "qualification": "badge-yellow",
    "proposal": "badge-purple",
    "negotiation": "badge-orange",
    "closed won": "badge-green",
    "closed lost": "badge-red",
}


def is_known_stage(stage: str) -> bool:
    return stage in STAGES


def stage_badge_class(stage: str | None) -> str:
    """CSS class for a stage badge; unknown stages render grey."""
    return _BADGE_CLASSES.get((stage or "").strip().lower(), "badge-gray")
