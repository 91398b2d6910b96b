"""Field-level validation for funnel entry payloads.

A payload is any mapping of field name to raw value. Values may be strings
straight from an HTML form or already-typed values from a JSON body or a
Python caller. ``validate_entry`` normalizes what it can and reports every
problem it finds, in field declaration order, so a form can show all errors
at once.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping

from ..errors import ErrorKind, FieldError
from .stages import STAGES, is_known_stage

FIELDS: tuple[str, ...] = (
    "company_name",
    "contact_name",
    "contact_email",
    "stage",
    "value",
    "probability",
    "expected_revenue",
    "creation_date",
    "expected_close_date",
    "team_member",
    "progress_to_won",
    "last_interacted_on",
    "next_step",
)

TEXT_FIELDS = ("company_name", "contact_name", "stage", "team_member", "next_step")
POSITIVE_FIELDS = ("value", "expected_revenue")
PERCENT_FIELDS = ("probability", "progress_to_won")
DATE_FIELDS = ("creation_date", "expected_close_date", "last_interacted_on")

LABELS = {
    "company_name": "Company name",
    "contact_name": "Contact name",
    "contact_email": "Contact email",
    "stage": "Stage",
    "value": "Value",
    "probability": "Probability",
    "expected_revenue": "Expected revenue",
    "creation_date": "Creation date",
    "expected_close_date": "Expected close date",
    "team_member": "Team member",
    "progress_to_won": "Progress to won",
    "last_interacted_on": "Last interacted on",
    "next_step": "Next step",
}

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _Invalid(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass
class ValidationResult:
    """Normalized record on success, otherwise the collected field errors."""

    record: dict[str, Any] | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# ── Parsers ────────────────────────────────────────────────────────────────

def is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def is_valid_email(raw: Any) -> bool:
    return isinstance(raw, str) and bool(_EMAIL_RE.match(raw.strip()))


def parse_number(raw: Any) -> float | None:
    """Coerce a form string or numeric value to a finite float, else None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        number = float(raw)
    elif isinstance(raw, str):
        try:
            number = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_datetime(raw: Any) -> datetime | None:
    """Parse an ISO-8601 date or date-time into an aware UTC datetime."""
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, date):
        parsed = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# ── Per-field rules ────────────────────────────────────────────────────────

def _check_text(name: str, raw: Any, strict_stages: bool) -> str:
    if is_blank(raw):
        raise _Invalid(ErrorKind.MISSING_FIELD, f"{LABELS[name]} is required")
    if not isinstance(raw, str):
        raise _Invalid(ErrorKind.INVALID_FORMAT, f"{LABELS[name]} must be text")
    text = raw.strip()
    if name == "stage" and strict_stages and not is_known_stage(text):
        raise _Invalid(
            ErrorKind.INVALID_FORMAT,
            f"Stage must be one of: {', '.join(STAGES)}",
        )
    return text


def _check_email(name: str, raw: Any, strict_stages: bool) -> str:
    if is_blank(raw):
        raise _Invalid(ErrorKind.MISSING_FIELD, "Contact email is required")
    if not is_valid_email(raw):
        raise _Invalid(ErrorKind.INVALID_FORMAT, "Invalid email address")
    return raw.strip()


def _check_positive(name: str, raw: Any, strict_stages: bool) -> float:
    number = parse_number(raw)
    if number is None or number <= 0:
        raise _Invalid(ErrorKind.OUT_OF_RANGE, f"{LABELS[name]} must be positive")
    return number


def _check_percent(name: str, raw: Any, strict_stages: bool) -> float:
    number = parse_number(raw)
    if number is None or not 0 <= number <= 100:
        raise _Invalid(
            ErrorKind.OUT_OF_RANGE, f"{LABELS[name]} must be between 0 and 100"
        )
    return number


def _check_date(name: str, raw: Any, strict_stages: bool) -> datetime:
    parsed = parse_datetime(raw)
    if parsed is None:
        raise _Invalid(ErrorKind.INVALID_FORMAT, f"{LABELS[name]} must be a valid date")
    return parsed


_RULES: dict[str, Callable[[str, Any, bool], Any]] = {
    **{name: _check_text for name in TEXT_FIELDS},
    "contact_email": _check_email,
    **{name: _check_positive for name in POSITIVE_FIELDS},
    **{name: _check_percent for name in PERCENT_FIELDS},
    **{name: _check_date for name in DATE_FIELDS},
}


def _derivable(record: Mapping[str, Any]) -> bool:
    return bool(record.get("value")) and bool(record.get("probability"))


def validate_entry(
    payload: Mapping[str, Any],
    *,
    partial: bool = False,
    strict_stages: bool = True,
) -> ValidationResult:
    """Validate a create payload (``partial=False``) or an update patch.

    In full mode every field is required, except ``expected_revenue`` which
    may be left out when it can be derived from ``value`` and ``probability``.
    In partial mode only the keys present in ``payload`` are checked. Keys
    that are not funnel entry fields are ignored.
    """
    record: dict[str, Any] = {}
    errors: list[FieldError] = []
    missing_expected_revenue = False

    for name in FIELDS:
        if name not in payload:
            if partial:
                continue
            if name == "expected_revenue":
                missing_expected_revenue = True
                continue
            errors.append(
                FieldError(name, ErrorKind.MISSING_FIELD, f"{LABELS[name]} is required")
            )
            continue
        raw = payload[name]
        if (
            name == "expected_revenue"
            and not partial
            and is_blank(raw)
        ):
            missing_expected_revenue = True
            continue
        if not partial and is_blank(raw) and name not in TEXT_FIELDS:
            errors.append(
                FieldError(name, ErrorKind.MISSING_FIELD, f"{LABELS[name]} is required")
            )
            continue
        try:
            record[name] = _RULES[name](name, raw, strict_stages)
        except _Invalid as exc:
            errors.append(FieldError(name, exc.kind, exc.message))

    if missing_expected_revenue and not _derivable(record):
        missing = FieldError(
            "expected_revenue", ErrorKind.MISSING_FIELD, "Expected revenue is required"
        )
        # keep declaration order: expected_revenue precedes the date fields
        position = next(
            (
                i for i, err in enumerate(errors)
                if FIELDS.index(err.field) > FIELDS.index("expected_revenue")
            ),
            len(errors),
        )
        errors.insert(position, missing)

    if errors:
        return ValidationResult(record=None, errors=errors)
    return ValidationResult(record=record)
