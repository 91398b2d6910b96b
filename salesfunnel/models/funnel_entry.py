"""Funnel entry model - a sales opportunity owned by one account."""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import DateTime, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDMixin


class FunnelEntry(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "funnel_entry"

    company_name: Mapped[str] = mapped_column(String(300))
    contact_name: Mapped[str] = mapped_column(String(200))
    contact_email: Mapped[str] = mapped_column(String(255))
    stage: Mapped[str] = mapped_column(String(50), index=True)
    value: Mapped[float] = mapped_column(Float)
    probability: Mapped[float] = mapped_column(Float)
    expected_revenue: Mapped[float] = mapped_column(Float)
    creation_date: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True))
    expected_close_date: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True))
    team_member: Mapped[str] = mapped_column(String(200))
    progress_to_won: Mapped[float] = mapped_column(Float)
    last_interacted_on: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True))
    next_step: Mapped[str] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_account.id", ondelete="CASCADE"), index=True
    )

    # Relationships
    owner: Mapped["UserAccount"] = relationship(back_populates="funnel_entries")  # noqa: F821

    def __repr__(self) -> str:
        return f"<FunnelEntry {self.company_name!r} ({self.stage})>"

