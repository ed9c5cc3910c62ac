"""
txevents EventDispatcher v1.0

Instance-scoped, in-process event bus.

This is the bus the transactional layer wraps. It is instance-scoped
and injected into the components that need it. This allows:
- Testing with isolated dispatchers
- Several independent event streams in one process
- Wrapping by TransactionalDispatcher without global lookup

Listeners subscribe by event name, event class, or wildcard pattern.
Listener exceptions are not caught here: a failing listener surfaces
to whoever dispatched the event.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
import logging

from .events import EventLike, event_name
from .patterns import is_wildcard, matches


logger = logging.getLogger("kernel.event_dispatcher")


# Type alias for event listeners
Listener = Callable[..., Any]


@dataclass
class DispatchedEvent:
    """
    History entry for one dispatch.

    Records the resolved name, the payload handed to listeners and how
    many listeners were invoked.
    """
    name: str
    payload: List[Any]
    listener_count: int = 0
    halted: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventDispatcher:
    """
    Instance-scoped event bus.

    Features:
    - Exact name and class subscriptions
    - Wildcard subscriptions ("orders.*")
    - Halting dispatch (first non-None response wins)
    - Dispatch history (configurable depth)

    Usage:
        dispatcher = EventDispatcher()

        # Subscribe to an event class
        dispatcher.listen(OrderPlaced, send_receipt)

        # Subscribe to a named event with a payload
        dispatcher.listen("orders.shipped", notify_customer)

        # Subscribe to a family of events
        dispatcher.listen("orders.*", audit_log)

        dispatcher.dispatch(OrderPlaced(order_id=42))
        dispatcher.dispatch("orders.shipped", [42, "UPS"])
    """

    def __init__(self, max_history: int = 100):
        """
        Initialize the event dispatcher.

        Args:
            max_history: Maximum dispatches to retain in history
        """
        self._max_history = max_history

        # Exact listeners: event name -> list of listeners
        self._listeners: Dict[str, List[Listener]] = {}

        # Wildcard listeners: pattern -> list of listeners
        self._wildcards: Dict[str, List[Listener]] = {}

        # Dispatch history for debugging/audit
        self._history: List[DispatchedEvent] = []

        logger.debug("EventDispatcher created")

    def listen(
        self,
        events: Union[EventLike, Iterable[EventLike]],
        listener: Listener,
    ) -> None:
        """
        Register a listener for one or more events.

        Args:
            events: Event name, class, wildcard pattern, or a list of these
            listener: Callable invoked on dispatch
        """
        if isinstance(events, (list, tuple, set)):
            for event in events:
                self.listen(event, listener)
            return

        name = event_name(events)
        if is_wildcard(name):
            self._wildcards.setdefault(name, []).append(listener)
            logger.debug(f"Wildcard listener added for {name}")
        else:
            self._listeners.setdefault(name, []).append(listener)
            logger.debug(f"Listener added for {name}")

    def has_listeners(self, event: EventLike) -> bool:
        """Check whether any listener would receive an event."""
        name = event_name(event)
        return bool(self._listeners.get(name)) or self.has_wildcard_listeners(name)

    def has_wildcard_listeners(self, event: EventLike) -> bool:
        """Check whether any wildcard listener matches an event."""
        name = event_name(event)
        return any(
            listeners and matches(pattern, name)
            for pattern, listeners in self._wildcards.items()
        )

    def forget(self, event: EventLike) -> None:
        """
        Remove all listeners registered under an event or pattern.

        Args:
            event: Event name, class, or the exact wildcard pattern
        """
        name = event_name(event)
        if is_wildcard(name):
            self._wildcards.pop(name, None)
        else:
            self._listeners.pop(name, None)
        logger.debug(f"Forgot listeners for {name}")

    def clear_listeners(self) -> None:
        """Remove every listener."""
        self._listeners.clear()
        self._wildcards.clear()
        logger.debug("Cleared all listeners")

    def dispatch(
        self,
        event: EventLike,
        payload: Any = None,
        halt: bool = False,
    ) -> Any:
        """
        Dispatch an event to its listeners.

        Args:
            event: Event name or event instance
            payload: Arguments for listeners of named events
            halt: Stop at the first non-None response and return it

        Returns:
            First non-None response when halting, otherwise the list of
            responses. Propagation stops early if a listener returns False.
        """
        name = event_name(event)
        if isinstance(event, str):
            arguments = self._wrap_payload(payload)
        else:
            arguments = [event]

        responses: List[Any] = []
        invoked = 0

        for listener, wildcard in self._get_listeners(name):
            if wildcard:
                response = listener(name, arguments)
            else:
                response = listener(*arguments)
            invoked += 1

            if halt and response is not None:
                self._record(name, arguments, invoked, halted=True)
                return response

            if response is False:
                break

            responses.append(response)

        self._record(name, arguments, invoked, halted=False)

        logger.debug(f"Dispatched {name} to {invoked} listener(s)")

        return None if halt else responses

    @staticmethod
    def _wrap_payload(payload: Any) -> List[Any]:
        if payload is None:
            return []
        if isinstance(payload, (list, tuple)):
            return list(payload)
        return [payload]

    def _get_listeners(self, name: str) -> List[Tuple[Listener, bool]]:
        """Exact listeners first, then matching wildcard listeners."""
        listeners = [(listener, False) for listener in self._listeners.get(name, [])]
        for pattern, wildcard_listeners in self._wildcards.items():
            if matches(pattern, name):
                listeners.extend((listener, True) for listener in wildcard_listeners)
        return listeners

    def _record(self, name: str, payload: List[Any], count: int, halted: bool) -> None:
        self._history.append(DispatchedEvent(name, payload, count, halted))
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def get_history(
        self,
        limit: int = 20,
        name: Optional[str] = None,
    ) -> List[DispatchedEvent]:
        """
        Get dispatch history.

        Args:
            limit: Maximum entries to return
            name: Filter by event name (optional)

        Returns:
            List of recent dispatches
        """
        history = self._history
        if name:
            history = [entry for entry in history if entry.name == name]
        return history[-limit:]

    def clear_history(self) -> None:
        """Clear dispatch history."""
        self._history.clear()
        logger.debug("Cleared dispatch history")

    @property
    def listener_count(self) -> int:
        """Get total number of registered listeners."""
        count = sum(len(listeners) for listeners in self._listeners.values())
        count += sum(len(listeners) for listeners in self._wildcards.values())
        return count

    @property
    def event_count(self) -> int:
        """Get number of dispatches in history."""
        return len(self._history)

    def get_listener_summary(self) -> Dict[str, int]:
        """
        Get summary of registered listeners by event name or pattern.

        Returns:
            Dict mapping event name or wildcard pattern to listener count
        """
        summary = {}
        for name, listeners in self._listeners.items():
            summary[name] = len(listeners)
        for pattern, listeners in self._wildcards.items():
            summary[pattern] = len(listeners)
        return summary
