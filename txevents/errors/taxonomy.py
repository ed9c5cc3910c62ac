"""
errors/taxonomy.py - Error classification system

Exceptions raised by the transactional event layer. Each carries an
ErrorCode and ErrorCategory so callers can branch on the failure kind
without string matching.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from enum import Enum


class ErrorCategory(Enum):
    """Error categories."""
    # Usage errors (1xxx)
    USAGE = "usage"

    # Configuration errors (2xxx)
    CONFIGURATION = "configuration"


class ErrorCode(Enum):
    """Specific error codes."""

    # Usage (1xxx)
    USE_NO_TRANSACTION = 1001

    # Configuration (2xxx)
    CFG_INVALID_FILE = 2001
    CFG_INVALID_VALUE = 2002


class TransactionalEventsError(Exception):
    """Base class for all txevents errors."""

    code: ErrorCode = ErrorCode.USE_NO_TRANSACTION
    category: ErrorCategory = ErrorCategory.USAGE

    def __init__(self, message: str = "", code: Optional[ErrorCode] = None, detail: str = ""):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
        }


class NoOpenTransactionError(TransactionalEventsError):
    """
    Raised when an event is queued while no transaction frame is open.

    The transactional dispatcher only queues after checking for an open
    frame, so this signals a broken invariant rather than bad input.
    """

    code = ErrorCode.USE_NO_TRANSACTION
    category = ErrorCategory.USAGE


class ConfigurationError(TransactionalEventsError):
    """Raised when configuration cannot be loaded or is invalid."""

    code = ErrorCode.CFG_INVALID_VALUE
    category = ErrorCategory.CONFIGURATION
