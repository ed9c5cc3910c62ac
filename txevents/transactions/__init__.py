"""
transactions/ - Transaction Model

Frame stack used to defer events, and the transaction manager that
emits begin/commit/rollback lifecycle events.
"""

from .schemas import (
    FrameStatus,
    StackScope,
    TransactionStatus,
    DispatchRecord,
    TransactionFrame,
    Transaction,
)

from .stack import (
    TransactionStack,
    ThreadScopedTransactionStack,
    create_stack,
)

from .manager import (
    TransactionManager,
    atomic,
)

__all__ = [
    # Schemas
    "FrameStatus",
    "StackScope",
    "TransactionStatus",
    "DispatchRecord",
    "TransactionFrame",
    "Transaction",
    # Stack
    "TransactionStack",
    "ThreadScopedTransactionStack",
    "create_stack",
    # Manager
    "TransactionManager",
    "atomic",
]
