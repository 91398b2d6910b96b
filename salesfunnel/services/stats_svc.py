"""Dashboard statistics for one account's funnel."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.aggregator import FunnelStats, summarize
from ..models.funnel_entry import FunnelEntry


async def funnel_stats(db: AsyncSession, owner_id: uuid.UUID) -> FunnelStats:
    """Summary cards + per-stage rollup, in order of first appearance."""
    stmt = (
        select(FunnelEntry.stage, FunnelEntry.value, FunnelEntry.expected_revenue)
        .where(FunnelEntry.created_by == owner_id)
        .order_by(FunnelEntry.created_at, FunnelEntry.id)
    )
    result = await db.execute(stmt)
    return summarize(row._mapping for row in result.all())
