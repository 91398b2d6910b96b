"""Tests for the funnel entry service."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from salesfunnel.config import settings
from salesfunnel.errors import ErrorKind, ValidationFailed
from salesfunnel.services import funnel_svc, stats_svc


@pytest.mark.asyncio
async def test_create_entry_derives_expected_revenue(db: AsyncSession, account, entry_payload):
    entry = await funnel_svc.create_entry(db, account.id, entry_payload(expected_revenue=1))
    assert entry.id is not None
    assert entry.created_by == account.id
    assert entry.expected_revenue == 15000
    assert entry.creation_date.year == 2023


@pytest.mark.asyncio
async def test_create_entry_keeps_client_figure_without_recompute(
    db: AsyncSession, account, entry_payload, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings, "recompute_expected_revenue", False)
    entry = await funnel_svc.create_entry(db, account.id, entry_payload(expected_revenue=1))
    assert entry.expected_revenue == 1


@pytest.mark.asyncio
async def test_create_entry_validation_failure(db: AsyncSession, account, entry_payload):
    with pytest.raises(ValidationFailed) as exc_info:
        await funnel_svc.create_entry(
            db, account.id, entry_payload(company_name="", probability=120)
        )
    kinds = {err.field: err.kind for err in exc_info.value.errors}
    assert kinds == {
        "company_name": ErrorKind.MISSING_FIELD,
        "probability": ErrorKind.OUT_OF_RANGE,
    }
    assert await funnel_svc.list_entries(db, account.id) == []


@pytest.mark.asyncio
async def test_list_entries_owner_scoped(db: AsyncSession, account, other_account, entry_payload):
    await funnel_svc.create_entry(db, account.id, entry_payload(company_name="Mine"))
    await funnel_svc.create_entry(db, other_account.id, entry_payload(company_name="Theirs"))

    mine = await funnel_svc.list_entries(db, account.id)
    assert [e.company_name for e in mine] == ["Mine"]


@pytest.mark.asyncio
async def test_get_entry_hides_foreign_records(db: AsyncSession, account, other_account, entry_payload):
    entry = await funnel_svc.create_entry(db, account.id, entry_payload())
    assert await funnel_svc.get_entry(db, account.id, entry.id) is not None
    assert await funnel_svc.get_entry(db, other_account.id, entry.id) is None
    assert await funnel_svc.get_entry(db, account.id, uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_update_entry_partial(db: AsyncSession, account, entry_payload):
    entry = await funnel_svc.create_entry(
        db, account.id, entry_payload(value=75000, probability=20)
    )
    updated = await funnel_svc.update_entry(
        db, account.id, entry.id, {"probability": "50", "stage": "Negotiation"}
    )
    assert updated is not None
    assert updated.stage == "Negotiation"
    assert updated.probability == 50
    assert updated.expected_revenue == 37500
    assert updated.company_name == "Acme Corp"


@pytest.mark.asyncio
async def test_update_entry_rejects_invalid_patch(db: AsyncSession, account, entry_payload):
    entry = await funnel_svc.create_entry(db, account.id, entry_payload())
    with pytest.raises(ValidationFailed):
        await funnel_svc.update_entry(db, account.id, entry.id, {"contact_email": "nope"})


@pytest.mark.asyncio
async def test_update_foreign_entry_returns_none(db: AsyncSession, account, other_account, entry_payload):
    entry = await funnel_svc.create_entry(db, account.id, entry_payload())
    assert await funnel_svc.update_entry(db, other_account.id, entry.id, {"stage": "Proposal"}) is None
    refreshed = await funnel_svc.get_entry(db, account.id, entry.id)
    assert refreshed.stage == "Prospecting"


@pytest.mark.asyncio
async def test_delete_entry(db: AsyncSession, account, other_account, entry_payload):
    entry = await funnel_svc.create_entry(db, account.id, entry_payload())
    assert await funnel_svc.delete_entry(db, other_account.id, entry.id) is False
    assert await funnel_svc.delete_entry(db, account.id, entry.id) is True
    assert await funnel_svc.get_entry(db, account.id, entry.id) is None
    assert await funnel_svc.delete_entry(db, account.id, entry.id) is False


@pytest.mark.asyncio
async def test_funnel_stats_owner_scoped(db: AsyncSession, account, other_account, entry_payload):
    await funnel_svc.create_entry(
        db, account.id, entry_payload(stage="Closed Won", value=100, probability=40)
    )
    await funnel_svc.create_entry(
        db, account.id, entry_payload(stage="Prospecting", value=200, probability=0, expected_revenue=5)
    )
    await funnel_svc.create_entry(
        db, other_account.id, entry_payload(stage="Closed Won", value=999999)
    )

    stats = await stats_svc.funnel_stats(db, account.id)
    assert stats.total_revenue == 40
    assert stats.deals_won == 1
    assert stats.pipeline_value == 300
    assert stats.conversion_rate == 50
    assert [r.stage for r in stats.stages] == ["Closed Won", "Prospecting"]


@pytest.mark.asyncio
async def test_funnel_stats_empty(db: AsyncSession, account):
    stats = await stats_svc.funnel_stats(db, account.id)
    assert stats.to_dict()["stages"] == []
    assert stats.conversion_rate == 0


STAGE_SEQUENCE = [
    "Proposal",
    "Closed Won",
    "Prospecting",
    "Negotiation",
    "Qualification",
    "Closed Lost",
]


@pytest.mark.asyncio
async def test_stage_rollup_follows_creation_order(db: AsyncSession, account, entry_payload):
    for stage in STAGE_SEQUENCE:
        await funnel_svc.create_entry(db, account.id, entry_payload(stage=stage, company_name=stage))

    for _ in range(3):
        stats = await stats_svc.funnel_stats(db, account.id)
        assert [r.stage for r in stats.stages] == STAGE_SEQUENCE


@pytest.mark.asyncio
async def test_list_entries_newest_first(db: AsyncSession, account, entry_payload):
    for stage in STAGE_SEQUENCE:
        await funnel_svc.create_entry(db, account.id, entry_payload(stage=stage, company_name=stage))

    entries = await funnel_svc.list_entries(db, account.id)
    assert [e.company_name for e in entries] == list(reversed(STAGE_SEQUENCE))
