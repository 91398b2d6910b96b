"""HTML pages - login/register, dashboard, funnel table and deal form."""

from __future__ import annotations

import uuid
from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core.stages import STAGES, stage_badge_class
from ..core.validator import FIELDS, LABELS
from ..database import get_db
from ..deps import get_optional_user
from ..errors import ConflictError, ValidationFailed
from ..models.account import UserAccount
from ..models.funnel_entry import FunnelEntry
from ..schemas.account import UserRegister
from ..security import (
    SessionUser,
    clear_session_cookie,
    issue_session_token,
    sanitize_next_path,
    set_session_cookie,
)
from ..services import account_svc, funnel_svc, stats_svc

router = APIRouter(tags=["pages"], include_in_schema=False)
templates = Jinja2Templates(directory=str(settings.templates_dir))
templates.env.globals["app_title"] = settings.app_title
templates.env.globals["stages"] = STAGES
templates.env.globals["labels"] = LABELS
templates.env.globals["stage_badge_class"] = stage_badge_class


def _money(value) -> str:
    try:
        return f"${float(value):,.2f}".replace(".00", "")
    except (TypeError, ValueError):
        return "$0"


templates.env.filters["money"] = _money


def _login_redirect(request: Request) -> RedirectResponse:
    path_with_query = request.url.path
    if request.url.query:
        path_with_query = f"{path_with_query}?{request.url.query}"
    target = quote(path_with_query, safe="/:?=&")
    return RedirectResponse(f"/login?next={target}", status_code=303)


def _form_values(entry: FunnelEntry | None) -> dict[str, str]:
    if entry is None:
        today = date.today().isoformat()
        values = {name: "" for name in FIELDS}
        values.update(
            creation_date=today,
            last_interacted_on=today,
            probability="0",
            progress_to_won="0",
        )
        return values
    values: dict[str, str] = {}
    for name in FIELDS:
        raw = getattr(entry, name)
        if hasattr(raw, "date"):
            values[name] = raw.date().isoformat()
        elif isinstance(raw, float):
            values[name] = f"{raw:.2f}".rstrip("0").rstrip(".")
        else:
            values[name] = raw or ""
    return values


# ── Auth pages ─────────────────────────────────────────────────────────────

@router.get("/")
async def root():
    return RedirectResponse("/dashboard", status_code=303)


@router.get("/login")
async def login_page(
    request: Request,
    next: str = "/dashboard",  # noqa: A002
    user: UserAccount | None = Depends(get_optional_user),
):
    safe_next = sanitize_next_path(next, "/dashboard")
    if user:
        return RedirectResponse(safe_next, status_code=303)
    return templates.TemplateResponse("auth/login.html", {
        "request": request,
        "next": safe_next,
        "registered": request.query_params.get("registered") == "1",
        "error": None,
    })


@router.post("/login")
async def login_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    email = str(form.get("email", "")).strip()
    password = str(form.get("password", ""))
    next_path = sanitize_next_path(str(form.get("next", "")), "/dashboard")

    account = await account_svc.authenticate(db, email, password)
    if not account:
        return templates.TemplateResponse("auth/login.html", {
            "request": request,
            "next": next_path,
            "registered": False,
            "error": "Invalid email or password",
            "email": email,
        }, status_code=400)

    token = issue_session_token(settings, SessionUser(id=account.id, email=account.email))
    response = RedirectResponse(next_path, status_code=303)
    set_session_cookie(response, settings, token)
    return response


@router.get("/register")
async def register_page(request: Request):
    return templates.TemplateResponse("auth/register.html", {
        "request": request,
        "values": {},
        "errors": {},
        "error": None,
    })


@router.post("/register")
async def register_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    values = {key: str(form.get(key, "")) for key in ("username", "email", "password", "location")}
    data = UserRegister(
        username=values["username"],
        email=values["email"],
        password=values["password"],
        location=values["location"] or None,
        date=date.today(),
    )
    try:
        await account_svc.register_account(db, data)
    except ValidationFailed as exc:
        return templates.TemplateResponse("auth/register.html", {
            "request": request,
            "values": values,
            "errors": exc.by_field(),
            "error": None,
        }, status_code=400)
    except ConflictError as exc:
        return templates.TemplateResponse("auth/register.html", {
            "request": request,
            "values": values,
            "errors": {},
            "error": exc.message,
        }, status_code=409)
    return RedirectResponse("/login?registered=1", status_code=303)


@router.post("/logout")
async def logout():
    response = RedirectResponse("/login", status_code=303)
    clear_session_cookie(response, settings)
    return response


# ── App pages ──────────────────────────────────────────────────────────────

@router.get("/dashboard")
async def dashboard(
    request: Request,
    user: UserAccount | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if not user:
        return _login_redirect(request)
    stats = await stats_svc.funnel_stats(db, user.id)
    max_value = max((r.total_value for r in stats.stages), default=0) or 1
    return templates.TemplateResponse("dashboard.html", {
        "request": request,
        "user": user,
        "stats": stats,
        "max_value": max_value,
    })


@router.get("/funnel")
async def funnel_list(
    request: Request,
    user: UserAccount | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if not user:
        return _login_redirect(request)
    entries = await funnel_svc.list_entries(db, user.id)
    return templates.TemplateResponse("funnel/list.html", {
        "request": request,
        "user": user,
        "entries": entries,
    })


@router.get("/funnel/new")
async def funnel_new(
    request: Request,
    user: UserAccount | None = Depends(get_optional_user),
):
    if not user:
        return _login_redirect(request)
    return templates.TemplateResponse("funnel/form.html", {
        "request": request,
        "user": user,
        "entry": None,
        "values": _form_values(None),
        "errors": {},
    })


@router.post("/funnel/new")
async def funnel_create(
    request: Request,
    user: UserAccount | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if not user:
        return _login_redirect(request)
    form = await request.form()
    payload = {name: str(form.get(name, "")) for name in FIELDS if name in form}
    try:
        await funnel_svc.create_entry(db, user.id, payload)
    except ValidationFailed as exc:
        return templates.TemplateResponse("funnel/form.html", {
            "request": request,
            "user": user,
            "entry": None,
            "values": {**_form_values(None), **payload},
            "errors": exc.by_field(),
        }, status_code=400)
    return RedirectResponse("/funnel", status_code=303)


@router.get("/funnel/{entry_id}")
async def funnel_edit(
    request: Request,
    entry_id: uuid.UUID,
    user: UserAccount | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if not user:
        return _login_redirect(request)
    entry = await funnel_svc.get_entry(db, user.id, entry_id)
    if not entry:
        return RedirectResponse("/funnel", status_code=303)
    return templates.TemplateResponse("funnel/form.html", {
        "request": request,
        "user": user,
        "entry": entry,
        "values": _form_values(entry),
        "errors": {},
    })


@router.post("/funnel/{entry_id}")
async def funnel_update(
    request: Request,
    entry_id: uuid.UUID,
    user: UserAccount | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if not user:
        return _login_redirect(request)
    entry = await funnel_svc.get_entry(db, user.id, entry_id)
    if not entry:
        return RedirectResponse("/funnel", status_code=303)

    form = await request.form()
    payload = {name: str(form.get(name, "")) for name in FIELDS if name in form}
    # expected revenue is read-only on the form; blank means "derive it"
    if not payload.get("expected_revenue", "").strip():
        payload.pop("expected_revenue", None)
    try:
        await funnel_svc.update_entry(db, user.id, entry_id, payload)
    except ValidationFailed as exc:
        return templates.TemplateResponse("funnel/form.html", {
            "request": request,
            "user": user,
            "entry": entry,
            "values": {**_form_values(entry), **payload},
            "errors": exc.by_field(),
        }, status_code=400)
    return RedirectResponse("/funnel", status_code=303)


@router.post("/funnel/{entry_id}/delete")
async def funnel_delete(
    request: Request,
    entry_id: uuid.UUID,
    user: UserAccount | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if not user:
        return _login_redirect(request)
    await funnel_svc.delete_entry(db, user.id, entry_id)
    return RedirectResponse("/funnel", status_code=303)


@router.get("/settings")
async def settings_page(
    request: Request,
    user: UserAccount | None = Depends(get_optional_user),
):
    if not user:
        return _login_redirect(request)
    return templates.TemplateResponse("settings.html", {
        "request": request,
        "user": user,
    })
