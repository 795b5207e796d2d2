"""Broadcast event data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventName(str, Enum):
    """Push events delivered to subscribers."""

    INIT = "init"
    NEW_LOG = "newLog"
    LOGCAT_UPDATE = "logcatUpdate"
    LOGCAT_CLEARED = "logcatCleared"
    LOGS_CLEARED = "logsCleared"
    EXCLUDED_PATTERNS_UPDATED = "excludedPatternsUpdated"


@dataclass(frozen=True)
class HubEvent:
    """A named event with a JSON-serialisable payload."""

    name: EventName
    payload: Any = None
