"""API tests for funnel entry CRUD and statistics."""

from __future__ import annotations

import logging
import uuid

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_funnel_requires_auth(client: AsyncClient, entry_payload):
    assert (await client.get("/api/funnel")).status_code == 401
    assert (await client.post("/api/funnel", json=entry_payload())).status_code == 401
    assert (await client.get("/api/funnel/stats")).status_code == 401


@pytest.mark.asyncio
async def test_create_and_list(client: AsyncClient, account, headers_for, entry_payload):
    headers = headers_for(account)
    resp = await client.post(
        "/api/funnel", json=entry_payload(expected_revenue=1), headers=headers
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Funnel entry created successfully"
    assert body["data"]["expected_revenue"] == 15000
    assert body["data"]["created_by"] == str(account.id)

    resp = await client.get("/api/funnel", headers=headers)
    assert resp.status_code == 200
    assert [e["company_name"] for e in resp.json()] == ["Acme Corp"]


@pytest.mark.asyncio
async def test_create_ignores_client_owner(client: AsyncClient, account, other_account, headers_for, entry_payload):
    resp = await client.post(
        "/api/funnel",
        json=entry_payload(created_by=str(other_account.id)),
        headers=headers_for(account),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["created_by"] == str(account.id)


@pytest.mark.asyncio
async def test_create_validation_errors(client: AsyncClient, account, headers_for, entry_payload):
    payload = entry_payload(contact_email="nope", probability=101)
    del payload["company_name"]
    resp = await client.post("/api/funnel", json=payload, headers=headers_for(account))
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    assert [(e["field"], e["kind"]) for e in body["errors"]] == [
        ("company_name", "MissingField"),
        ("contact_email", "InvalidFormat"),
        ("probability", "OutOfRange"),
    ]


@pytest.mark.asyncio
async def test_get_update_delete(client: AsyncClient, account, headers_for, entry_payload):
    headers = headers_for(account)
    created = (await client.post(
        "/api/funnel", json=entry_payload(value=75000, probability=20), headers=headers
    )).json()["data"]
    url = f"/api/funnel/{created['id']}"

    resp = await client.get(url, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["contact_email"] == "john@acme.com"

    resp = await client.put(url, json={"probability": 50, "stage": "Proposal"}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Funnel entry updated successfully"
    assert body["data"]["stage"] == "Proposal"
    assert body["data"]["expected_revenue"] == 37500

    resp = await client.delete(url, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Funnel entry deleted successfully"}
    assert (await client.get(url, headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_update_invalid_patch(client: AsyncClient, account, headers_for, entry_payload):
    headers = headers_for(account)
    created = (await client.post("/api/funnel", json=entry_payload(), headers=headers)).json()["data"]
    resp = await client.put(
        f"/api/funnel/{created['id']}", json={"stage": "Someday"}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "stage"


@pytest.mark.asyncio
async def test_foreign_entries_are_not_found(
    client: AsyncClient, account, other_account, headers_for, entry_payload
):
    created = (await client.post(
        "/api/funnel", json=entry_payload(), headers=headers_for(account)
    )).json()["data"]
    url = f"/api/funnel/{created['id']}"
    intruder = headers_for(other_account)

    assert (await client.get(url, headers=intruder)).status_code == 404
    resp = await client.put(url, json={"stage": "Closed Lost"}, headers=intruder)
    assert resp.status_code == 404
    assert resp.json()["error"] == "Funnel entry not found or unauthorized"
    assert (await client.delete(url, headers=intruder)).status_code == 404
    assert (await client.get("/api/funnel", headers=intruder)).json() == []


@pytest.mark.asyncio
async def test_unknown_entry_id(client: AsyncClient, account, headers_for):
    resp = await client.get(f"/api/funnel/{uuid.uuid4()}", headers=headers_for(account))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Funnel entry not found"}


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, account, headers_for, entry_payload):
    headers = headers_for(account)
    await client.post(
        "/api/funnel",
        json=entry_payload(stage="Closed Won", value=100, probability=40, expected_revenue=40),
        headers=headers,
    )
    await client.post(
        "/api/funnel",
        json=entry_payload(stage="Prospecting", value=200, probability=0, expected_revenue=1),
        headers=headers,
    )
    resp = await client.get("/api/funnel/stats", headers=headers)
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["totalRevenue"] == 40
    assert stats["dealsWon"] == 1
    assert stats["pipelineValue"] == 300
    assert stats["conversionRate"] == 50
    assert [s["stage"] for s in stats["stages"]] == ["Closed Won", "Prospecting"]


@pytest.mark.asyncio
async def test_stats_empty(client: AsyncClient, account, headers_for):
    resp = await client.get("/api/funnel/stats", headers=headers_for(account))
    assert resp.json() == {
        "totalRevenue": 0,
        "dealsWon": 0,
        "pipelineValue": 0,
        "conversionRate": 0,
        "stages": [],
    }


@pytest.mark.asyncio
async def test_huge_value_keeps_finite_expected_revenue(
    client: AsyncClient, account, headers_for, entry_payload
):
    resp = await client.post(
        "/api/funnel",
        json=entry_payload(value=1e307, probability=50),
        headers=headers_for(account),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["expected_revenue"] == pytest.approx(5e306)


@pytest.mark.asyncio
async def test_not_found_logs_error_kind(
    client: AsyncClient, account, headers_for, caplog: pytest.LogCaptureFixture
):
    with caplog.at_level(logging.INFO, logger="salesfunnel.app"):
        resp = await client.get(f"/api/funnel/{uuid.uuid4()}", headers=headers_for(account))
    assert resp.status_code == 404
    assert any("Unauthorized on GET /api/funnel/" in rec.getMessage() for rec in caplog.records)


@pytest.mark.asyncio
async def test_malformed_entry_id_is_validation_error(client: AsyncClient, account, headers_for):
    resp = await client.get("/api/funnel/not-a-uuid", headers=headers_for(account))
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    assert body["errors"][0]["field"] == "entry_id"
    assert body["errors"][0]["kind"] == "InvalidFormat"


@pytest.mark.asyncio
async def test_non_object_body_is_validation_error(client: AsyncClient, account, headers_for):
    resp = await client.post("/api/funnel", json=[1, 2, 3], headers=headers_for(account))
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    assert body["errors"][0]["kind"] == "InvalidFormat"
