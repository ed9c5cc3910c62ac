"""
kernel/policy.py - Transactional eligibility policy

Decides whether an event is subject to deferral while a transaction is
open. Deferral is opt-in: an event is eligible only when it carries the
transactional marker or when its name matches an include pattern and no
exclude pattern. Exclude patterns are checked first.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional
import logging

from .events import EventLike, event_name, is_transactional_event
from .patterns import matches


logger = logging.getLogger(__name__)


class DecisionReason(str, Enum):
    """Why an event was (or was not) found eligible."""
    MARKER = "marker"
    EXCLUDED = "excluded"
    INCLUDED = "included"
    UNMATCHED = "unmatched"


@dataclass
class EligibilityDecision:
    """Result of evaluating one event against the rule set."""
    event: str
    eligible: bool
    reason: DecisionReason
    pattern: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "event": self.event,
            "eligible": self.eligible,
            "reason": self.reason.value,
            "pattern": self.pattern,
        }


@dataclass
class EligibilityRules:
    """Ordered include and exclude pattern lists."""
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)


def explain(
    event: EventLike,
    include: Iterable[str],
    exclude: Iterable[str],
) -> EligibilityDecision:
    """
    Evaluate an event against include/exclude patterns.

    Args:
        event: Event name, class, or instance
        include: Patterns that make an event eligible
        exclude: Patterns that make an event ineligible (checked first)

    Returns:
        EligibilityDecision with the verdict and the deciding pattern
    """
    name = event_name(event)

    if is_transactional_event(event):
        return EligibilityDecision(name, True, DecisionReason.MARKER)

    for pattern in exclude:
        if matches(pattern, name):
            return EligibilityDecision(name, False, DecisionReason.EXCLUDED, pattern)

    for pattern in include:
        if matches(pattern, name):
            return EligibilityDecision(name, True, DecisionReason.INCLUDED, pattern)

    return EligibilityDecision(name, False, DecisionReason.UNMATCHED)


def is_eligible(
    event: EventLike,
    include: Iterable[str],
    exclude: Iterable[str],
) -> bool:
    """Check whether an event should be deferred inside a transaction."""
    return explain(event, include, exclude).eligible


class EligibilityPolicy:
    """
    Eligibility policy bound to a replaceable rule set.

    The setters swap a whole list at once. They are meant for startup and
    test reconfiguration, not for use while other threads dispatch through
    the same policy.
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ):
        self._rules = EligibilityRules(
            include=list(include or []),
            exclude=list(exclude or []),
        )

    @property
    def rules(self) -> EligibilityRules:
        return self._rules

    @property
    def include(self) -> List[str]:
        return list(self._rules.include)

    @property
    def exclude(self) -> List[str]:
        return list(self._rules.exclude)

    def set_include_patterns(self, patterns: Optional[Iterable[str]]) -> None:
        """Replace the include patterns."""
        self._rules.include = list(patterns or [])
        logger.debug(f"Include patterns set: {self._rules.include}")

    def set_exclude_patterns(self, patterns: Optional[Iterable[str]]) -> None:
        """Replace the exclude patterns."""
        self._rules.exclude = list(patterns or [])
        logger.debug(f"Exclude patterns set: {self._rules.exclude}")

    def explain(self, event: EventLike) -> EligibilityDecision:
        return explain(event, self._rules.include, self._rules.exclude)

    def is_eligible(self, event: EventLike) -> bool:
        return self.explain(event).eligible
