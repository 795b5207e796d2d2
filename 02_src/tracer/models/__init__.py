"""Core data models for Tracer."""

from .events import EventName, HubEvent
from .logcat import LEVEL_TOKENS, LogLevel
from .transaction import BlockKind, PendingRequest, TraceBlock, Transaction

__all__ = [
    # Correlation
    "BlockKind",
    "TraceBlock",
    "PendingRequest",
    "Transaction",
    # Broadcast
    "EventName",
    "HubEvent",
    # Logcat
    "LogLevel",
    "LEVEL_TOKENS",
]
