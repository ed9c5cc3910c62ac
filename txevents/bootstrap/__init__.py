"""
bootstrap/ - Bootstrap Layer

Configuration loading, logging setup, dispatcher assembly and the CLI.
"""

from .config import (
    TxEventsConfig,
    TransactionalEventsConfig,
    LoggingConfig,
    load_config,
    get_config,
    reset_config,
)

from .app import (
    create_dispatcher,
    create_transaction_manager,
)

from .entrypoints import (
    setup_logging,
    cli_main,
)

__all__ = [
    # Config
    "TxEventsConfig",
    "TransactionalEventsConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    "reset_config",
    # Assembly
    "create_dispatcher",
    "create_transaction_manager",
    # Entry points
    "setup_logging",
    "cli_main",
]
