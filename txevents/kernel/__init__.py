"""
kernel/__init__.py - Transactional dispatch kernel.

Event identity, pattern matching, eligibility policy, the underlying
event bus and the transactional dispatcher that wraps it.
"""

from .events import (
    EventLike,
    TransactionalEvent,
    TransactionLifecycleEvent,
    TransactionBeginning,
    TransactionCommitted,
    TransactionRolledBack,
    class_name,
    event_name,
    is_transactional_event,
)

from .patterns import matches, is_wildcard

from .policy import (
    DecisionReason,
    EligibilityDecision,
    EligibilityRules,
    EligibilityPolicy,
    explain,
    is_eligible,
)

from .event_dispatcher import EventDispatcher, DispatchedEvent

from .transactional_dispatcher import TransactionalDispatcher


__all__ = [
    # Events
    "EventLike",
    "TransactionalEvent",
    "TransactionLifecycleEvent",
    "TransactionBeginning",
    "TransactionCommitted",
    "TransactionRolledBack",
    "class_name",
    "event_name",
    "is_transactional_event",
    # Patterns
    "matches",
    "is_wildcard",
    # Policy
    "DecisionReason",
    "EligibilityDecision",
    "EligibilityRules",
    "EligibilityPolicy",
    "explain",
    "is_eligible",
    # Dispatchers
    "EventDispatcher",
    "DispatchedEvent",
    "TransactionalDispatcher",
]
