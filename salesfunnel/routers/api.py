"""JSON API - registration, login, users, funnel entry CRUD and stats."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..deps import get_current_user
from ..errors import NotFoundError, UnauthorizedError
from ..models.account import UserAccount
from ..schemas.account import UserLogin, UserRegister, UserResponse
from ..schemas.funnel import (
    ENTRY_EXAMPLE,
    ErrorResponse,
    FunnelEntryEnvelope,
    FunnelEntryResponse,
    FunnelStatsResponse,
)
from ..security import SessionUser, clear_session_cookie, issue_session_token, set_session_cookie
from ..services import account_svc, funnel_svc, stats_svc

router = APIRouter(prefix="/api")

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Unauthorized"},
}
_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Funnel entry not found"}}


# ── Auth ───────────────────────────────────────────────────────────────────

@router.post(
    "/auth/register",
    tags=["Authentication"],
    status_code=201,
    responses={
        400: _ERRORS[400],
        409: {"model": ErrorResponse, "description": "Email or username taken"},
    },
)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Create a new user account."""
    await account_svc.register_account(db, data)
    return {"message": "User created successfully"}


@router.post("/auth/login", tags=["Authentication"], responses={401: _ERRORS[401]})
async def login(data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    """Exchange credentials for a session token (also set as a cookie)."""
    account = await account_svc.authenticate(db, data.email, data.password)
    if not account:
        raise UnauthorizedError("Invalid email or password")
    token = issue_session_token(settings, SessionUser(id=account.id, email=account.email))
    set_session_cookie(response, settings, token)
    return {
        "token": token,
        "user": UserResponse.model_validate(account).model_dump(mode="json"),
    }


@router.post("/auth/logout", tags=["Authentication"])
async def logout():
    response = JSONResponse({"message": "Logged out successfully"})
    clear_session_cookie(response, settings)
    return response


# ── Users ──────────────────────────────────────────────────────────────────

@router.get(
    "/users",
    tags=["Users"],
    response_model=list[UserResponse],
    responses={401: _ERRORS[401]},
)
async def list_users(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All registered users, without password hashes."""
    return await account_svc.list_accounts(db)


@router.get("/users/me", tags=["Users"], response_model=UserResponse, responses={401: _ERRORS[401]})
async def current_user(user: UserAccount = Depends(get_current_user)):
    return user


# ── Funnel ─────────────────────────────────────────────────────────────────

@router.get(
    "/funnel",
    tags=["Funnel"],
    response_model=list[FunnelEntryResponse],
    responses={401: _ERRORS[401]},
)
async def list_funnel(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's funnel entries, newest first."""
    return await funnel_svc.list_entries(db, user.id)


@router.post(
    "/funnel",
    tags=["Funnel"],
    status_code=201,
    response_model=FunnelEntryEnvelope,
    responses=_ERRORS,
)
async def create_funnel_entry(
    payload: dict[str, Any] = Body(..., examples=[ENTRY_EXAMPLE]),
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a sales opportunity. ``expected_revenue`` is derived when possible."""
    entry = await funnel_svc.create_entry(db, user.id, payload)
    return {"message": "Funnel entry created successfully", "data": entry}


@router.get(
    "/funnel/stats",
    tags=["Funnel"],
    response_model=FunnelStatsResponse,
    responses={401: _ERRORS[401]},
)
async def funnel_stats(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard figures and per-stage rollup for the caller's entries."""
    stats = await stats_svc.funnel_stats(db, user.id)
    return stats.to_dict()


@router.get(
    "/funnel/{entry_id}",
    tags=["Funnel"],
    response_model=FunnelEntryResponse,
    responses={**_ERRORS, **_NOT_FOUND},
)
async def get_funnel_entry(
    entry_id: uuid.UUID,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await funnel_svc.get_entry(db, user.id, entry_id)
    if not entry:
        raise NotFoundError()
    return entry


@router.put(
    "/funnel/{entry_id}",
    tags=["Funnel"],
    response_model=FunnelEntryEnvelope,
    responses={**_ERRORS, **_NOT_FOUND},
)
async def update_funnel_entry(
    entry_id: uuid.UUID,
    payload: dict[str, Any] = Body(..., examples=[{"stage": "Qualification", "value": 75000, "probability": 50}]),
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partially update an entry owned by the caller."""
    entry = await funnel_svc.update_entry(db, user.id, entry_id, payload)
    if not entry:
        raise NotFoundError("Funnel entry not found or unauthorized")
    return {"message": "Funnel entry updated successfully", "data": entry}


@router.delete(
    "/funnel/{entry_id}",
    tags=["Funnel"],
    responses={**_ERRORS, **_NOT_FOUND},
)
async def delete_funnel_entry(
    entry_id: uuid.UUID,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await funnel_svc.delete_entry(db, user.id, entry_id)
    if not deleted:
        raise NotFoundError()
    return {"message": "Funnel entry deleted successfully"}
