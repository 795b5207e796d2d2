"""Broadcast module."""

from .hub import BroadcastHub, IBroadcastHub, SnapshotProvider, Subscriber, format_sse

__all__ = [
    "BroadcastHub",
    "IBroadcastHub",
    "SnapshotProvider",
    "Subscriber",
    "format_sse",
]
