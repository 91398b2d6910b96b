"""Funnel entry service - owner-scoped CRUD over validated payloads."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core import metrics
from ..core.validator import validate_entry
from ..errors import ValidationFailed
from ..models.funnel_entry import FunnelEntry

logger = logging.getLogger(__name__)


def prepare_entry(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a full payload and fill in derived fields.

    Raises ValidationFailed with every field error found.
    """
    result = validate_entry(payload, strict_stages=settings.strict_stages)
    if not result.ok:
        raise ValidationFailed(result.errors)
    record = result.record
    if settings.recompute_expected_revenue or "expected_revenue" not in record:
        record = metrics.enrich(record)
    return record


def prepare_patch(entry: FunnelEntry, patch: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a partial update; re-derive expected revenue when inputs change."""
    result = validate_entry(patch, partial=True, strict_stages=settings.strict_stages)
    if not result.ok:
        raise ValidationFailed(result.errors)
    if not settings.recompute_expected_revenue:
        return result.record
    current = {"value": entry.value, "probability": entry.probability}
    return metrics.enrich_patch(current, result.record)


# ── Queries ────────────────────────────────────────────────────────────────

async def list_entries(db: AsyncSession, owner_id: uuid.UUID) -> list[FunnelEntry]:
    stmt = (
        select(FunnelEntry)
        .where(FunnelEntry.created_by == owner_id)
        .order_by(FunnelEntry.created_at.desc(), FunnelEntry.company_name)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_entry(
    db: AsyncSession, owner_id: uuid.UUID, entry_id: uuid.UUID
) -> FunnelEntry | None:
    stmt = select(FunnelEntry).where(
        FunnelEntry.id == entry_id, FunnelEntry.created_by == owner_id
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


# ── Mutations ──────────────────────────────────────────────────────────────

async def create_entry(
    db: AsyncSession, owner_id: uuid.UUID, payload: Mapping[str, Any]
) -> FunnelEntry:
    record = prepare_entry(payload)
    entry = FunnelEntry(created_by=owner_id, **record)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    logger.info("Funnel entry %s created for %s", entry.id, owner_id)
    return entry


async def update_entry(
    db: AsyncSession,
    owner_id: uuid.UUID,
    entry_id: uuid.UUID,
    patch: Mapping[str, Any],
) -> FunnelEntry | None:
    """Apply a partial update. Returns None when the entry is missing or foreign."""
    entry = await get_entry(db, owner_id, entry_id)
    if not entry:
        return None
    changes = prepare_patch(entry, patch)
    for key, value in changes.items():
        setattr(entry, key, value)
    await db.commit()
    await db.refresh(entry)
    logger.info("Funnel entry %s updated (%s)", entry.id, ", ".join(sorted(changes)) or "no changes")
    return entry


async def delete_entry(
    db: AsyncSession, owner_id: uuid.UUID, entry_id: uuid.UUID
) -> bool:
    entry = await get_entry(db, owner_id, entry_id)
    if not entry:
        return False
    await db.delete(entry)
    await db.commit()
    logger.info("Funnel entry %s deleted", entry_id)
    return True
