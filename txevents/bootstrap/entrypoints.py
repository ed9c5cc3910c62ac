"""
bootstrap/entrypoints.py - Command line entry point v1.0

Logging setup and the `txevents` CLI, which reports how the configured
patterns treat given event names.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import json
import logging
import sys

from txevents.errors import ConfigurationError
from txevents.kernel.policy import EligibilityPolicy

from .config import TxEventsConfig, load_config

logger = logging.getLogger("bootstrap.entrypoints")


class JSONFormatter(logging.Formatter):
    def format(self, record):
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


# Handlers added by the last setup_logging call
_installed_handlers: List[logging.Handler] = []


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = False,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """
    Configure application logging.

    Calling it again replaces the handlers it installed before.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        log_format: Format string for plain text logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    # Console handler (stderr keeps command output clean)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    _installed_handlers.append(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        _installed_handlers.append(file_handler)

    # Root logger
    root_logger.setLevel(log_level)
    for handler in _installed_handlers:
        root_logger.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect transactional event configuration",
        prog="txevents",
    )

    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides the configured level)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser(
        "check",
        help="Show whether events would be deferred inside a transaction",
    )
    check.add_argument("events", nargs="+", help="Event names or dotted class paths")

    commands.add_parser("config", help="Print the effective configuration")

    return parser


def _run_check(config: TxEventsConfig, events: List[str], as_json: bool) -> int:
    policy = EligibilityPolicy(config.events.include, config.events.exclude)
    decisions = [policy.explain(name) for name in events]

    if as_json:
        print(json.dumps([decision.to_dict() for decision in decisions], indent=2))
        return 0

    for decision in decisions:
        verdict = "DEFER" if decision.eligible else "NOW"
        reason = decision.reason.value
        if decision.pattern:
            reason = f"{reason} by '{decision.pattern}'"
        print(f"{verdict:<6}{decision.event}  ({reason})")
    return 0


def _run_config(config: TxEventsConfig, as_json: bool) -> int:
    data = config.to_dict()
    if as_json:
        print(json.dumps(data, indent=2))
        return 0

    print(f"environment: {data['environment']}")
    print(f"stack_scope: {data['events']['stack_scope']}")
    print("include:")
    for pattern in data["events"]["include"]:
        print(f"  - {pattern}")
    print("exclude:")
    for pattern in data["events"]["exclude"]:
        print(f"  - {pattern}")
    return 0


def cli_main(args: Optional[list] = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parsed = _build_parser().parse_args(args)

    try:
        config = load_config(parsed.config)

        # Setup logging (command line flags win over configuration)
        log_level = "DEBUG" if parsed.verbose else parsed.log_level or config.logging.level
        setup_logging(
            level=log_level,
            log_file=config.logging.log_file,
            json_format=config.logging.json_logs,
            log_format=config.logging.format,
        )

        if parsed.command == "check":
            return _run_check(config, parsed.events, parsed.json)
        return _run_config(config, parsed.json)

    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        if e.detail:
            print(e.detail, file=sys.stderr)
        return 2
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(cli_main())
