"""Account schemas."""

from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel


class UserRegister(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    location: str | None = None
    time: dt.datetime | None = None
    date: dt.date | None = None


class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    location: str | None = None
    time: dt.datetime | None = None
    date: dt.date | None = None

    model_config = {"from_attributes": True}
