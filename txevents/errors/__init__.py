"""
errors/ - Error Taxonomy

Structured exceptions for the transactional event layer.
"""

from .taxonomy import (
    ErrorCategory,
    ErrorCode,
    TransactionalEventsError,
    NoOpenTransactionError,
    ConfigurationError,
)

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "TransactionalEventsError",
    "NoOpenTransactionError",
    "ConfigurationError",
]
