"""Tracer core module."""

from .app import Application, IApplication
from .broadcast import BroadcastHub, IBroadcastHub, Subscriber
from .errors import (
    MalformedBlock,
    MutationRejected,
    ProducerUnavailable,
    TracerError,
    TransportWriteFailure,
    UnmatchedResponse,
)
from .filters import ExclusionFilter, IExclusionFilter
from .models import (
    BlockKind,
    EventName,
    HubEvent,
    LogLevel,
    PendingRequest,
    TraceBlock,
    Transaction,
)
from .parser import BlockParser, TraceFileSource
from .store import CorrelationStore, ICorrelationStore
from .supervisor import ILogcatSupervisor, LogcatSupervisor

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "BlockKind",
    "TraceBlock",
    "PendingRequest",
    "Transaction",
    "EventName",
    "HubEvent",
    "LogLevel",
    # Errors
    "TracerError",
    "ProducerUnavailable",
    "MalformedBlock",
    "UnmatchedResponse",
    "TransportWriteFailure",
    "MutationRejected",
    # Components
    "IBroadcastHub",
    "BroadcastHub",
    "Subscriber",
    "IExclusionFilter",
    "ExclusionFilter",
    "ICorrelationStore",
    "CorrelationStore",
    "BlockParser",
    "TraceFileSource",
    "ILogcatSupervisor",
    "LogcatSupervisor",
]
