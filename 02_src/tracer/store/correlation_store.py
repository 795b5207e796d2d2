"""Correlation store: pending requests, normalization and bounded history."""

import json
import math
import time
import uuid
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Protocol

from ..broadcast import IBroadcastHub
from ..config import DEFAULT_PENDING_TTL_SECONDS, HISTORY_CAPACITY
from ..logging_config import get_logger
from ..models import EventName, PendingRequest, Transaction

logger = get_logger(__name__)


class ICorrelationStore(Protocol):
    """Owns pending requests and the transaction history."""

    def enqueue_pending(self, request: PendingRequest) -> None:
        """Append a request to its URL's FIFO queue."""
        ...

    def dequeue_pending(self, url: str) -> PendingRequest | None:
        """Pop the oldest pending request for url, if any."""
        ...

    def submit(self, raw: dict[str, Any]) -> Transaction:
        """Normalize a matched record, retain it and publish it."""
        ...

    def clear(self) -> int:
        """Drop history and pending requests. Returns the history size cleared."""
        ...

    @property
    def history(self) -> list[Transaction]:
        """Retained transactions, newest first."""
        ...


def format_timestamp(moment: datetime | None = None) -> str:
    """Format as MM-DD HH:MM:SS.mmm in local time."""
    moment = moment or datetime.now()
    return moment.strftime("%m-%d %H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and would break the SSE payload
    raise ValueError(f"non-standard JSON constant {name}")


def try_parse_json(raw: Any) -> Any:
    """Decode text that looks like a JSON object or array, else None."""
    if not isinstance(raw, str):
        return None
    trimmed = raw.strip()
    if not trimmed or trimmed[0] not in "{[":
        return None
    try:
        return json.loads(trimmed, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None


def generate_id() -> str:
    """Millisecond timestamp plus random suffix."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def coerce_status(value: Any) -> int | float | None:
    """Numeric status or None; never raises."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


class CorrelationStore:
    """Matches requests to responses by URL in issue order and keeps history."""

    def __init__(
        self,
        hub: IBroadcastHub,
        capacity: int = HISTORY_CAPACITY,
        pending_ttl: float = DEFAULT_PENDING_TTL_SECONDS,
    ):
        self._hub = hub
        self._capacity = capacity
        self._pending_ttl = pending_ttl
        self._history: list[Transaction] = []
        self._pending: dict[str, deque[PendingRequest]] = {}

    # Pending requests
    def enqueue_pending(self, request: PendingRequest) -> None:
        """Append a request to its URL's FIFO queue."""
        self._evict_expired()
        self._pending.setdefault(request.url, deque()).append(request)

    def dequeue_pending(self, url: str) -> PendingRequest | None:
        """Pop the oldest pending request for url, if any."""
        queue = self._pending.get(url)
        if not queue:
            return None
        request = queue.popleft()
        if not queue:
            del self._pending[url]
        return request

    def pending_count(self, url: str | None = None) -> int:
        """Pending requests for url, or across all URLs."""
        if url is not None:
            return len(self._pending.get(url, ()))
        return sum(len(queue) for queue in self._pending.values())

    def _evict_expired(self) -> None:
        """Drop pending requests that waited longer than the TTL."""
        if self._pending_ttl <= 0:
            return
        cutoff = datetime.now() - timedelta(seconds=self._pending_ttl)
        for url in list(self._pending):
            queue = self._pending[url]
            while queue and queue[0].captured_at < cutoff:
                expired = queue.popleft()
                logger.warning(
                    "Evicting pending request with no response after %ss",
                    self._pending_ttl,
                    extra={"context": {"url": url, "method": expired.method}},
                )
            if not queue:
                del self._pending[url]

    # History
    def submit(self, raw: dict[str, Any]) -> Transaction:
        """Normalize a matched record, retain it and publish it."""
        transaction = self.normalize(raw)
        self._history.insert(0, transaction)
        del self._history[self._capacity:]
        self._hub.publish(EventName.NEW_LOG, transaction.to_dict())
        return transaction

    @staticmethod
    def normalize(raw: dict[str, Any]) -> Transaction:
        """Build a Transaction from a raw matched record."""
        request_body = raw.get("requestBody") or ""
        response_body = raw.get("responseBody") or ""
        return Transaction(
            id=str(raw.get("id") or generate_id()),
            timestamp=raw.get("timestamp") or format_timestamp(),
            method=raw.get("method") or "UNKNOWN",
            url=raw.get("url") or "",
            request_headers=dict(raw.get("requestHeaders") or {}),
            request_body=request_body,
            response_status=coerce_status(raw.get("responseStatus")),
            response_time_ms=int(raw.get("responseTimeMs") or 0),
            response_headers=dict(raw.get("responseHeaders") or {}),
            response_body=response_body,
            request_body_parsed=try_parse_json(request_body),
            response_body_parsed=try_parse_json(response_body),
        )

    def clear(self) -> int:
        """Drop history and pending requests. Returns the history size cleared."""
        cleared = len(self._history)
        dropped = self.pending_count()
        self._history = []
        self._pending.clear()
        if dropped:
            logger.info("Dropped %d pending requests on clear", dropped)
        self._hub.publish(EventName.LOGS_CLEARED)
        return cleared

    @property
    def history(self) -> list[Transaction]:
        return list(self._history)

    def history_payload(self) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self._history]
