"""
bootstrap/app.py - Dispatcher assembly v1.0

Builds a TransactionalDispatcher around a bus from configuration, and a
TransactionManager bound to it. Nothing here is global: callers keep the
returned objects and pass them to producers and consumers.
"""

from __future__ import annotations
from typing import Any, Optional
import logging

from txevents.kernel.event_dispatcher import EventDispatcher
from txevents.kernel.transactional_dispatcher import TransactionalDispatcher
from txevents.transactions.manager import TransactionManager

from .config import TxEventsConfig, get_config

logger = logging.getLogger("bootstrap.app")


def create_dispatcher(
    dispatcher: Any = None,
    config: Optional[TxEventsConfig] = None,
) -> TransactionalDispatcher:
    """
    Wrap a bus in a TransactionalDispatcher configured from settings.

    Args:
        dispatcher: Bus to wrap (a new EventDispatcher if omitted)
        config: Configuration (the loaded global config if omitted)

    Returns:
        Configured TransactionalDispatcher
    """
    config = config or get_config()
    bus = dispatcher if dispatcher is not None else EventDispatcher()

    events = TransactionalDispatcher(
        bus,
        include=config.events.include,
        exclude=config.events.exclude,
        scope=config.events.stack_scope,
    )

    logger.debug(
        f"TransactionalDispatcher assembled: include={config.events.include} "
        f"exclude={config.events.exclude} scope={config.events.stack_scope.value}"
    )

    return events


def create_transaction_manager(
    events: Any,
    connection: str = "default",
) -> TransactionManager:
    """Build a TransactionManager that reports its lifecycle on events."""
    return TransactionManager(events, connection=connection)
