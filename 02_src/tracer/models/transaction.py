"""Request/response correlation data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class BlockKind(str, Enum):
    """Kind of the block currently being collected."""

    REQUEST = "request"
    RESPONSE = "response"
    NONE = "none"


@dataclass
class TraceBlock:
    """An in-progress parse unit, discarded on its close delimiter."""

    kind: BlockKind = BlockKind.NONE
    lines: list[str] = field(default_factory=list)

    def open(self, kind: BlockKind) -> None:
        self.kind = kind
        self.lines = []

    def close(self) -> tuple[BlockKind, list[str]]:
        """Hand back the collected block and return to idle."""
        kind, lines = self.kind, self.lines
        self.kind = BlockKind.NONE
        self.lines = []
        return kind, lines

    @property
    def is_open(self) -> bool:
        return self.kind is not BlockKind.NONE


@dataclass
class PendingRequest:
    """A parsed request waiting for its response."""

    url: str
    method: str
    headers: dict[str, str]
    body: str
    captured_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class Transaction:
    """One fully correlated request+response pair, immutable once created."""

    id: str
    timestamp: str  # "MM-DD HH:MM:SS.mmm"
    method: str
    url: str
    request_headers: dict[str, str]
    request_body: str
    response_status: int | float | None
    response_time_ms: int
    response_headers: dict[str, str]
    response_body: str
    request_body_parsed: Any = None  # only set when the body decoded as JSON
    response_body_parsed: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation; parsed-body keys are omitted when absent."""
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "method": self.method,
            "url": self.url,
            "requestHeaders": dict(self.request_headers),
            "requestBody": self.request_body,
            "responseStatus": self.response_status,
            "responseTimeMs": self.response_time_ms,
            "responseHeaders": dict(self.response_headers),
            "responseBody": self.response_body,
        }
        if self.request_body_parsed is not None:
            data["requestBodyParsed"] = self.request_body_parsed
        if self.response_body_parsed is not None:
            data["responseBodyParsed"] = self.response_body_parsed
        return data
