"""
bootstrap/schemas.py - Pydantic models for configuration files

Validates the JSON configuration file before any value is applied.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from txevents.transactions.schemas import StackScope


class EventsSection(BaseModel):
    """The "events" section: which events are deferred."""

    model_config = ConfigDict(extra="forbid")

    include: Optional[List[str]] = Field(
        None, description="Patterns of events deferred inside transactions"
    )
    exclude: Optional[List[str]] = Field(
        None, description="Patterns of events never deferred (checked first)"
    )
    stack_scope: Optional[StackScope] = Field(
        None, description="Share one transaction stack or keep one per thread"
    )

    @field_validator("include", "exclude")
    @classmethod
    def _patterns_not_blank(cls, patterns: Optional[List[str]]) -> Optional[List[str]]:
        if patterns is None:
            return patterns
        for pattern in patterns:
            if not pattern.strip():
                raise ValueError("patterns must not be blank")
        return patterns


class LoggingSection(BaseModel):
    """The "logging" section."""

    model_config = ConfigDict(extra="forbid")

    level: Optional[str] = Field(None, description="Log level name")
    format: Optional[str] = Field(None, description="logging.Formatter format")
    log_file: Optional[str] = Field(None, description="Optional log file path")
    json_logs: Optional[bool] = Field(None, description="Emit JSON log lines")

    @field_validator("level")
    @classmethod
    def _known_level(cls, level: Optional[str]) -> Optional[str]:
        if level is None:
            return level
        level = level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {level}")
        return level


class ConfigFile(BaseModel):
    """Top-level configuration file layout."""

    model_config = ConfigDict(extra="forbid")

    environment: Optional[str] = None
    debug: Optional[bool] = None
    events: EventsSection = Field(default_factory=EventsSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)
    settings: Dict[str, Any] = Field(default_factory=dict)
