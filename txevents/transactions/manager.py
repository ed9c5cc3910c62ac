"""
transactions/manager.py - Transaction management

An in-memory unit of work that announces its lifecycle as events.
Begin, commit and rollback are dispatched as TransactionBeginning,
TransactionCommitted and TransactionRolledBack on the configured
dispatcher, which is what drives a TransactionalDispatcher.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
from contextlib import contextmanager
from functools import wraps
import logging

from txevents.kernel.events import (
    TransactionBeginning,
    TransactionCommitted,
    TransactionRolledBack,
)

from .schemas import Transaction, TransactionStatus


class TransactionManager:
    """
    Manages nested transactions and emits their lifecycle events.

    Only the innermost transaction may be committed or rolled back.
    Lifecycle events are dispatched after the manager's own bookkeeping
    is done, so listeners always observe a consistent nesting level.
    """

    def __init__(self, events: Any, connection: str = "default"):
        """
        Args:
            events: Dispatcher with a dispatch(event) method
            connection: Name reported in lifecycle events
        """
        self.events = events
        self.connection = connection
        self.logger = logging.getLogger("transactions")

        # Transaction stack (for nesting)
        self._stack: List[Transaction] = []

        # Completed transactions (for audit)
        self._history: List[Transaction] = []
        self._max_history = 100

    @property
    def level(self) -> int:
        """Current nesting depth."""
        return len(self._stack)

    @property
    def active_transaction(self) -> Optional[Transaction]:
        """Get current active transaction."""
        return self._stack[-1] if self._stack else None

    @property
    def active_transaction_id(self) -> Optional[str]:
        """Get current active transaction ID."""
        return self._stack[-1].transaction_id if self._stack else None

    def begin(self, source: str = "", description: str = "") -> Transaction:
        """Begin a new transaction."""
        tx = Transaction(
            status=TransactionStatus.ACTIVE,
            level=len(self._stack) + 1,
            source=source,
            description=description,
        )

        # Set parent if nested
        if self._stack:
            tx.parent_transaction_id = self._stack[-1].transaction_id

        self._stack.append(tx)

        self.logger.info(f"Transaction {tx.transaction_id} started (level {tx.level})")

        self.events.dispatch(TransactionBeginning(
            transaction_id=tx.transaction_id,
            level=tx.level,
            connection=self.connection,
        ))

        return tx

    def commit(self, transaction_id: str = None) -> bool:
        """Commit the innermost transaction."""
        tx = self._pop("commit", transaction_id)
        if tx is None:
            return False

        tx.status = TransactionStatus.COMMITTED
        tx.completed_at = datetime.now(timezone.utc)
        self._add_to_history(tx)

        self.logger.info(f"Transaction {tx.transaction_id} committed")

        self.events.dispatch(TransactionCommitted(
            transaction_id=tx.transaction_id,
            level=tx.level,
            connection=self.connection,
        ))

        return True

    def rollback(self, transaction_id: str = None) -> bool:
        """Rollback the innermost transaction."""
        tx = self._pop("rollback", transaction_id)
        if tx is None:
            return False

        tx.status = TransactionStatus.ROLLED_BACK
        tx.completed_at = datetime.now(timezone.utc)
        self._add_to_history(tx)

        self.logger.info(f"Transaction {tx.transaction_id} rolled back")

        self.events.dispatch(TransactionRolledBack(
            transaction_id=tx.transaction_id,
            level=tx.level,
            connection=self.connection,
        ))

        return True

    def _pop(self, action: str, transaction_id: Optional[str]) -> Optional[Transaction]:
        tx = self.active_transaction

        if tx is None:
            self.logger.error(f"Cannot {action}: no active transaction")
            return None

        if transaction_id and transaction_id != tx.transaction_id:
            self.logger.error(
                f"Cannot {action}: transaction {transaction_id} is not the innermost "
                f"(active: {tx.transaction_id})"
            )
            return None

        self._stack.pop()
        return tx

    @contextmanager
    def transaction(
        self,
        source: str = "",
        description: str = "",
    ):
        """
        Context manager for transactions.

        Commits when the block succeeds. Rolls back and re-raises when it
        fails. Errors raised by listeners while the commit is flushed
        propagate unchanged; the transaction stays committed.
        """
        tx = self.begin(source=source, description=description)
        try:
            yield tx
        except BaseException:
            self.rollback(tx.transaction_id)
            raise
        self.commit(tx.transaction_id)

    def _add_to_history(self, tx: Transaction) -> None:
        """Add transaction to history."""
        self._history.append(tx)

        # Trim history
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def get_history(self, limit: int = 20) -> List[Transaction]:
        """Get transaction history."""
        return self._history[-limit:]

    def get_summary(self) -> Dict[str, Any]:
        """Counts of completed transactions by status."""
        summary = {status.value: 0 for status in TransactionStatus}
        for tx in self._history:
            summary[tx.status.value] += 1
        summary[TransactionStatus.ACTIVE.value] = len(self._stack)
        return summary


# === DECORATORS ===

def atomic(manager: TransactionManager):
    """
    Decorator for atomic functions.

    Usage:
        @atomic(transactions)
        def place_order(order):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with manager.transaction(source=func.__name__):
                return func(*args, **kwargs)
        return wrapper
    return decorator
