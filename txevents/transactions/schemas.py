"""
transactions/schemas.py - Transaction data structures

Frames hold the events deferred while one transaction level is open.
Transaction records describe the units of work run by TransactionManager.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum
import uuid


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


class FrameStatus(Enum):
    """Lifecycle of a transaction frame."""
    OPEN = "open"
    FLUSHED = "flushed"
    DISCARDED = "discarded"


class StackScope(Enum):
    """How transaction stacks are shared between threads."""
    SHARED = "shared"
    THREAD = "thread"

    @classmethod
    def default(cls) -> "StackScope":
        """Get the default stack scope."""
        return cls.SHARED


class TransactionStatus(Enum):
    """Transaction status."""
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class DispatchRecord:
    """A dispatch held back until its transaction commits."""

    event: Any = None
    payload: Any = None

    # Resolved event identifier
    name: str = ""

    queued_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "queued_at": self.queued_at.isoformat(),
        }


@dataclass
class TransactionFrame:
    """Deferred dispatches for one open transaction level."""

    frame_id: str = field(default_factory=_short_id)

    status: FrameStatus = FrameStatus.OPEN

    opened_at: datetime = field(default_factory=_now)
    closed_at: Optional[datetime] = None

    records: List[DispatchRecord] = field(default_factory=list)

    def close(self, status: FrameStatus) -> None:
        self.status = status
        self.closed_at = _now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_id": self.frame_id,
            "status": self.status.value,
            "opened_at": self.opened_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "num_records": len(self.records),
        }


@dataclass
class Transaction:
    """Complete transaction record."""

    transaction_id: str = field(default_factory=_short_id)

    status: TransactionStatus = TransactionStatus.ACTIVE

    started_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None

    # Parent transaction (for nesting)
    parent_transaction_id: Optional[str] = None
    level: int = 1

    # Metadata
    source: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "status": self.status.value,
            "level": self.level,
            "parent_transaction_id": self.parent_transaction_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "source": self.source,
        }
