"""FastAPI dependencies for identity resolution."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .errors import UnauthorizedError
from .models.account import UserAccount
from .security import current_user_from_request
from .services import account_svc


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> UserAccount | None:
    """Resolve the session token to an account, or None when absent/stale."""
    session_user = current_user_from_request(request, settings)
    if not session_user:
        return None
    return await account_svc.get_account(db, session_user.id)


async def get_current_user(
    user: UserAccount | None = Depends(get_optional_user),
) -> UserAccount:
    """Require an authenticated account. Raises 401 otherwise."""
    if user is None:
        raise UnauthorizedError()
    return user
