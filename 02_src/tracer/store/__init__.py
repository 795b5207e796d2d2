"""Store module."""

from .correlation_store import (
    CorrelationStore,
    ICorrelationStore,
    format_timestamp,
    try_parse_json,
)

__all__ = [
    "CorrelationStore",
    "ICorrelationStore",
    "format_timestamp",
    "try_parse_json",
]
