"""Models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, TimestampMixin
from .account import UserAccount
from .funnel_entry import FunnelEntry

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "UserAccount",
    "FunnelEntry",
]
