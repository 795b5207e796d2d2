"""Exclusion filter implementation."""

from typing import Iterable, Protocol

from ..broadcast import IBroadcastHub
from ..errors import MutationRejected
from ..logging_config import get_logger
from ..models import EventName

logger = get_logger(__name__)


class IExclusionFilter(Protocol):
    """Mutable set of URL substrings that suppress capture."""

    def add(self, pattern: str) -> bool:
        """Add a pattern. Returns False if it was already present."""
        ...

    def remove(self, pattern: str) -> bool:
        """Remove a pattern. Returns False if it was not present."""
        ...

    def test(self, url: str) -> bool:
        """True if any pattern is a substring of url."""
        ...

    @property
    def patterns(self) -> list[str]:
        """Current patterns."""
        ...


class ExclusionFilter:
    """Substring exclusion set; mutations are broadcast to all observers."""

    def __init__(self, hub: IBroadcastHub, patterns: Iterable[str] = ()):
        self._hub = hub
        self._patterns: dict[str, None] = {}  # ordered set
        for pattern in patterns:
            self._patterns[self._normalize(pattern)] = None
        if self._patterns:
            logger.info("Filtering out API calls matching: %s", ", ".join(self._patterns))

    @staticmethod
    def _normalize(pattern: str) -> str:
        trimmed = pattern.strip() if isinstance(pattern, str) else ""
        if not trimmed:
            raise MutationRejected("Pattern is required")
        return trimmed

    def add(self, pattern: str) -> bool:
        """Add a pattern. Returns False if it was already present."""
        trimmed = self._normalize(pattern)
        if trimmed in self._patterns:
            return False
        self._patterns[trimmed] = None
        logger.info("Added exclusion pattern: %s", trimmed)
        self._hub.publish(EventName.EXCLUDED_PATTERNS_UPDATED, self.patterns)
        return True

    def remove(self, pattern: str) -> bool:
        """Remove a pattern. Returns False if it was not present."""
        trimmed = self._normalize(pattern)
        if trimmed not in self._patterns:
            return False
        del self._patterns[trimmed]
        logger.info("Removed exclusion pattern: %s", trimmed)
        self._hub.publish(EventName.EXCLUDED_PATTERNS_UPDATED, self.patterns)
        return True

    def test(self, url: str) -> bool:
        """True if any pattern is a substring of url."""
        return any(pattern in url for pattern in self._patterns)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)
