"""
bootstrap/config.py - Application configuration v1.0

Provides configuration loading from files, environment variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path
import os
import json
import logging

from pydantic import ValidationError

from txevents.errors import ConfigurationError, ErrorCode
from txevents.transactions.schemas import StackScope

from .schemas import ConfigFile

logger = logging.getLogger("bootstrap.config")


DEFAULT_INCLUDE = ["app.events"]

# Lifecycle events must reach the dispatcher immediately
DEFAULT_EXCLUDE = ["txevents.kernel.events", "orm.*"]


def _split_patterns(value: Optional[str], default: List[str]) -> List[str]:
    if value is None:
        return list(default)
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_scope(value: str) -> StackScope:
    try:
        return StackScope(value.lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid stack scope: {value!r}",
            code=ErrorCode.CFG_INVALID_VALUE,
            detail=f"expected one of {[scope.value for scope in StackScope]}",
        )


@dataclass
class TransactionalEventsConfig:
    """Which events are deferred and how stacks are scoped."""

    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    stack_scope: StackScope = StackScope.SHARED

    @classmethod
    def from_env(cls) -> "TransactionalEventsConfig":
        return cls(
            include=_split_patterns(os.getenv("TXEVENTS_INCLUDE"), DEFAULT_INCLUDE),
            exclude=_split_patterns(os.getenv("TXEVENTS_EXCLUDE"), DEFAULT_EXCLUDE),
            stack_scope=_parse_scope(os.getenv("TXEVENTS_STACK_SCOPE", "shared")),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("TXEVENTS_LOG_LEVEL", "INFO"),
            format=os.getenv("TXEVENTS_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("TXEVENTS_LOG_FILE"),
            json_logs=os.getenv("TXEVENTS_JSON_LOGS", "false").lower() == "true",
        )


@dataclass
class TxEventsConfig:
    """Root configuration."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    events: TransactionalEventsConfig = field(default_factory=TransactionalEventsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Additional settings
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "TxEventsConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("TXEVENTS_ENVIRONMENT", "development"),
            debug=os.getenv("TXEVENTS_DEBUG", "false").lower() == "true",
            events=TransactionalEventsConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "TxEventsConfig":
        """
        Load configuration from a JSON file.

        Raises:
            ConfigurationError: If the file is not valid JSON or does not
                match the expected layout
        """
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Config file is not valid JSON: {filepath}",
                code=ErrorCode.CFG_INVALID_FILE,
                detail=str(e),
            ) from e

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "TxEventsConfig":
        """Create config from dictionary, over environment defaults."""
        try:
            parsed = ConfigFile.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration",
                code=ErrorCode.CFG_INVALID_FILE,
                detail=str(e),
            ) from e

        config = cls.from_env()

        # Override with file values
        if parsed.environment is not None:
            config.environment = parsed.environment
        if parsed.debug is not None:
            config.debug = parsed.debug

        for key, value in parsed.events.model_dump(exclude_none=True).items():
            setattr(config.events, key, value)

        for key, value in parsed.logging.model_dump(exclude_none=True).items():
            setattr(config.logging, key, value)

        config.settings.update(parsed.settings)

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "events": {
                "include": list(self.events.include),
                "exclude": list(self.events.exclude),
                "stack_scope": self.events.stack_scope.value,
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
            "settings": dict(self.settings),
        }


# Global config instance
_config: Optional[TxEventsConfig] = None


def load_config(filepath: str = None) -> TxEventsConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        TxEventsConfig instance
    """
    global _config

    if filepath:
        _config = TxEventsConfig.from_file(filepath)
    else:
        # Try default locations
        default_paths = [
            "./txevents.json",
            "./config/txevents.json",
            os.path.expanduser("~/.txevents/config.json"),
        ]

        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                _config = TxEventsConfig.from_file(path)
                return _config

        # Fall back to environment
        _config = TxEventsConfig.from_env()

    logger.info(f"Configuration loaded: environment={_config.environment}")
    return _config


def get_config() -> TxEventsConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded configuration (used by tests)."""
    global _config
    _config = None
