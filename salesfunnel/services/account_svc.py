"""Account registration + authentication service."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..core.validator import is_valid_email
from ..errors import ConflictError, ErrorKind, FieldError, ValidationFailed
from ..models.account import UserAccount
from ..schemas.account import UserRegister
from ..security import hash_password_async, verify_password_async

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _should_update_last_login(last_login_at: datetime | None, now: datetime) -> bool:
    """Avoid hot-write amplification during rapid repeated logins."""
    last = _as_utc(last_login_at)
    if last is None:
        return True
    return (now - last).total_seconds() >= 60


def validate_registration(data: UserRegister) -> list[FieldError]:
    errors: list[FieldError] = []
    if not data.username.strip():
        errors.append(FieldError("username", ErrorKind.MISSING_FIELD, "Username is required"))
    if not data.email.strip():
        errors.append(FieldError("email", ErrorKind.MISSING_FIELD, "Email is required"))
    elif not is_valid_email(data.email):
        errors.append(FieldError("email", ErrorKind.INVALID_FORMAT, "Invalid email address"))
    if not data.password:
        errors.append(FieldError("password", ErrorKind.MISSING_FIELD, "Password is required"))
    elif len(data.password) < settings.password_min_length:
        errors.append(
            FieldError(
                "password",
                ErrorKind.OUT_OF_RANGE,
                f"Password must be at least {settings.password_min_length} characters",
            )
        )
    return errors


async def _find_conflict(db: AsyncSession, username: str, email: str) -> str | None:
    stmt = select(UserAccount.username, UserAccount.email).where(
        or_(UserAccount.email == email, UserAccount.username == username)
    )
    for row in (await db.execute(stmt)).all():
        if row.email == email:
            return "An account with this email already exists"
        if row.username == username:
            return "This username is already taken"
    return None


async def register_account(db: AsyncSession, data: UserRegister) -> UserAccount:
    """Create an account. Raises ValidationFailed or ConflictError."""
    errors = validate_registration(data)
    if errors:
        raise ValidationFailed(errors)

    username = data.username.strip()
    email = _normalize_email(data.email)
    conflict = await _find_conflict(db, username, email)
    if conflict:
        logger.warning("Registration rejected for %s: %s", email, conflict)
        raise ConflictError(conflict)

    account = UserAccount(
        username=username,
        email=email,
        password_hash=await hash_password_async(data.password),
        location=(data.location or "").strip() or None,
        time=data.time,
        date=data.date,
    )
    db.add(account)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("An account with this email or username already exists") from exc
    await db.refresh(account)
    logger.info("Account %s registered", account.email)
    return account


async def authenticate(db: AsyncSession, email: str, password: str) -> UserAccount | None:
    """Validate credentials. Returns the account or None."""
    email_norm = _normalize_email(email)
    if not email_norm or not password:
        return None

    account = (
        await db.execute(select(UserAccount).where(UserAccount.email == email_norm))
    ).scalar_one_or_none()
    if not account or not await verify_password_async(password, account.password_hash):
        logger.warning("Failed login for %s", email_norm)
        return None

    now = _utcnow()
    if _should_update_last_login(account.last_login_at, now):
        account.last_login_at = now
        await db.commit()
    return account


async def get_account(db: AsyncSession, account_id: uuid.UUID) -> UserAccount | None:
    return await db.get(UserAccount, account_id)


async def list_accounts(db: AsyncSession) -> list[UserAccount]:
    stmt = select(UserAccount).order_by(UserAccount.created_at, UserAccount.username)
    return list((await db.execute(stmt)).scalars().all())
