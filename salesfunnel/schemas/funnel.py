"""Funnel entry and statistics schemas."""

from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel, Field

ENTRY_EXAMPLE = {
    "company_name": "Acme Corp",
    "contact_name": "John Smith",
    "contact_email": "john@acme.com",
    "stage": "Prospecting",
    "value": 50000,
    "probability": 30,
    "expected_revenue": 15000,
    "creation_date": "2023-01-15T00:00:00Z",
    "expected_close_date": "2023-03-15T00:00:00Z",
    "team_member": "Jane Doe",
    "progress_to_won": 30,
    "last_interacted_on": "2023-01-20T00:00:00Z",
    "next_step": "Schedule demo call",
}


class FunnelEntryResponse(BaseModel):
    id: uuid.UUID
    company_name: str
    contact_name: str
    contact_email: str
    stage: str
    value: float
    probability: float
    expected_revenue: float
    creation_date: dt.datetime
    expected_close_date: dt.datetime
    team_member: str
    progress_to_won: float
    last_interacted_on: dt.datetime
    next_step: str
    created_by: uuid.UUID
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    model_config = {"from_attributes": True}


class FunnelEntryEnvelope(BaseModel):
    message: str
    data: FunnelEntryResponse


class StageRollupResponse(BaseModel):
    stage: str | None
    dealCount: int
    totalValue: float
    totalExpectedRevenue: float


class FunnelStatsResponse(BaseModel):
    totalRevenue: float = 0
    dealsWon: int = 0
    pipelineValue: float = 0
    conversionRate: int = 0
    stages: list[StageRollupResponse] = Field(default_factory=list)


class FieldErrorResponse(BaseModel):
    field: str
    kind: str
    message: str


class ErrorResponse(BaseModel):
    error: str
    errors: list[FieldErrorResponse] | None = None
