"""User account model - registration + login identity."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDMixin


class UserAccount(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "user_account"

    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(200), default=None)
    # Free-form signup metadata carried over from the registration form
    time: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    date: Mapped[dt.date | None] = mapped_column(Date, default=None)
    last_login_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    # Relationships
    funnel_entries: Mapped[list["FunnelEntry"]] = relationship(  # noqa: F821
        back_populates="owner", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<UserAccount {self.email!r}>"
