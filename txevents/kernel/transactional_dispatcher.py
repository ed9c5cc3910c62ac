"""
txevents TransactionalDispatcher v1.0

Event dispatcher decorator that holds transactional events back until
the surrounding transaction commits, and drops them if it rolls back.

The dispatcher wraps another bus and exposes the same interface, so it
can be handed to producers and consumers in its place. Only dispatch()
is intercepted; every other attribute is read from the wrapped bus.

INVARIANT: Deferred events are delivered exactly once, in the order
they were dispatched, after the transaction that queued them commits.
Events queued by a child transaction join the parent's queue on commit
when the parent is still open.
"""

from typing import Any, Iterable, List, Optional
import logging

from txevents.transactions.schemas import DispatchRecord, StackScope
from txevents.transactions.stack import TransactionStack, create_stack

from .events import (
    EventLike,
    TransactionBeginning,
    TransactionCommitted,
    TransactionLifecycleEvent,
    TransactionRolledBack,
    event_name,
)
from .policy import EligibilityPolicy


logger = logging.getLogger("kernel.transactional_dispatcher")


class TransactionalDispatcher:
    """
    Transaction-aware wrapper around an event bus.

    Usage:
        bus = EventDispatcher()
        events = TransactionalDispatcher(bus, include=["app.events"])
        transactions = TransactionManager(events)

        with transactions.transaction():
            events.dispatch(OrderPlaced(order_id=42))  # queued
        # listeners for OrderPlaced run here, after commit
    """

    def __init__(
        self,
        dispatcher: Any,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        stack: Optional[TransactionStack] = None,
        scope: StackScope = StackScope.SHARED,
    ):
        """
        Args:
            dispatcher: Wrapped bus with dispatch() and listen()
            include: Patterns of events to defer
            exclude: Patterns of events never deferred (checked first)
            stack: Transaction stack to use (built from scope if omitted)
            scope: Stack sharing mode when no stack is given
        """
        self._dispatcher = dispatcher
        self._policy = EligibilityPolicy(include, exclude)
        self._stack = stack if stack is not None else create_stack(scope)

        self._register_listeners()

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined here
        if name.startswith("__") or name in ("_dispatcher", "_policy", "_stack"):
            raise AttributeError(name)
        return getattr(self._dispatcher, name)

    @property
    def wrapped(self) -> Any:
        """The underlying bus."""
        return self._dispatcher

    @property
    def policy(self) -> EligibilityPolicy:
        return self._policy

    @property
    def stack(self) -> TransactionStack:
        return self._stack

    @property
    def include_patterns(self) -> List[str]:
        return self._policy.include

    @property
    def exclude_patterns(self) -> List[str]:
        return self._policy.exclude

    @property
    def transaction_depth(self) -> int:
        return self._stack.depth

    @property
    def is_transaction_running(self) -> bool:
        return self._stack.is_open()

    def set_include_patterns(self, patterns: Optional[Iterable[str]]) -> None:
        """
        Set the events that should be deferred inside transactions.

        Not safe to call while other threads dispatch through this
        dispatcher.
        """
        self._policy.set_include_patterns(patterns)

    def set_exclude_patterns(self, patterns: Optional[Iterable[str]]) -> None:
        """
        Set the events that are never deferred.

        Not safe to call while other threads dispatch through this
        dispatcher.
        """
        self._policy.set_exclude_patterns(patterns)

    def dispatch(
        self,
        event: EventLike,
        payload: Any = None,
        halt: bool = False,
    ) -> Any:
        """
        Dispatch an event, or queue it until the transaction commits.

        Args:
            event: Event name or event instance
            payload: Arguments for listeners of named events
            halt: Stop at the first non-None response; never deferred

        Returns:
            The wrapped bus's result, or None when the event was queued
        """
        if not halt and self._should_defer(event):
            self._stack.enqueue(DispatchRecord(
                event=event,
                payload=payload,
                name=event_name(event),
            ))
            logger.debug(
                f"Deferred {event_name(event)} (depth={self._stack.depth})"
            )
            return None

        return self._dispatcher.dispatch(event, payload, halt)

    def _should_defer(self, event: EventLike) -> bool:
        # Lifecycle events drive the stack, whatever the patterns say
        if isinstance(event, TransactionLifecycleEvent):
            return False
        return self._stack.is_open() and self._policy.is_eligible(event)

    def _on_transaction_begin(self, *args: Any) -> None:
        self._stack.begin()

    def _on_transaction_commit(self, *args: Any) -> None:
        # A child commit is only final once every ancestor commits
        records = self._stack.commit_into_parent()
        if not records:
            return

        logger.debug(f"Flushing {len(records)} deferred event(s)")
        for record in records:
            self._dispatcher.dispatch(record.event, record.payload)

    def _on_transaction_rollback(self, *args: Any) -> None:
        records = self._stack.rollback()
        if records:
            logger.debug(f"Discarded {len(records)} deferred event(s)")

    def _register_listeners(self) -> None:
        """Subscribe to transaction lifecycle events on the wrapped bus."""
        self._dispatcher.listen(TransactionBeginning, self._on_transaction_begin)
        self._dispatcher.listen(TransactionCommitted, self._on_transaction_commit)
        self._dispatcher.listen(TransactionRolledBack, self._on_transaction_rollback)
