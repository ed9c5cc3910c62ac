"""
txevents Kernel Events v1.0

Event identity and the transaction lifecycle events.

An event is dispatched either by name (a plain string) or as an
instance of an event class. Classes are identified by their dotted
path, so a namespace prefix such as "app.events" covers every event
class defined under that package.

INVARIANT: Lifecycle events carry no payload the transactional layer
depends on. Only their type and order matter.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Union


# Anything accepted by dispatch(): a name, an event class, or an instance.
EventLike = Union[str, type, object]


# =============================================================================
# EVENT IDENTITY
# =============================================================================

def class_name(cls: type) -> str:
    """Dotted path of a class, e.g. "app.events.OrderPlaced"."""
    return f"{cls.__module__}.{cls.__qualname__}"


def event_name(event: EventLike) -> str:
    """
    Resolve an event to its string identifier.

    Args:
        event: Event name, event class, or event instance

    Returns:
        The name itself for strings, otherwise the dotted class path
    """
    if isinstance(event, str):
        return event
    if isinstance(event, type):
        return class_name(event)
    return class_name(type(event))


# =============================================================================
# OPT-IN MARKER
# =============================================================================

class TransactionalEvent:
    """
    Marker base class for events that are always transactional.

    Instances of subclasses are deferred inside an open transaction no
    matter what the include/exclude patterns say. Event types that cannot
    inherit from this class may set ``transactional = True`` instead.
    """

    transactional = True


def is_transactional_event(event: EventLike) -> bool:
    """Check whether an event self-declares as transactional."""
    if isinstance(event, str):
        return False
    if isinstance(event, TransactionalEvent):
        return True
    if isinstance(event, type) and issubclass(event, TransactionalEvent):
        return True
    return getattr(event, "transactional", False) is True


# =============================================================================
# TRANSACTION LIFECYCLE EVENTS
# =============================================================================

@dataclass
class TransactionLifecycleEvent:
    """
    Base class for transaction lifecycle notifications.

    - transaction_id: Identifier of the transaction concerned
    - level: Nesting depth of that transaction (1 = outermost)
    - connection: Name of the transactional resource
    - timestamp: When the notification was emitted
    """
    transaction_id: str = ""
    level: int = 0
    connection: str = "default"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "event": event_name(self),
            "transaction_id": self.transaction_id,
            "level": self.level,
            "connection": self.connection,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class TransactionBeginning(TransactionLifecycleEvent):
    """Emitted after a transaction has been opened, before its body runs."""


@dataclass
class TransactionCommitted(TransactionLifecycleEvent):
    """Emitted after a transaction has been committed."""


@dataclass
class TransactionRolledBack(TransactionLifecycleEvent):
    """Emitted after a transaction has been rolled back."""
