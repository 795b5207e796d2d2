"""Streaming parser for block-delimited request/response traces."""

import re

from ..errors import MalformedBlock, UnmatchedResponse
from ..filters import IExclusionFilter
from ..logging_config import get_logger
from ..models import BlockKind, PendingRequest, TraceBlock
from ..store import ICorrelationStore, format_timestamp
from .extract import extract_headers_and_body

logger = get_logger(__name__)

REQUEST_OPEN = "===== REQUEST ====="
RESPONSE_OPEN = "===== RESPONSE ====="
BLOCK_CLOSE = "========================"

STATUS_LINE = re.compile(r"^(\d{3})\s+(?:.*?\s+)?URL:\s*(.+)$")


def _first_content_line(lines: list[str]) -> int:
    for index, line in enumerate(lines):
        if line.strip():
            return index
    return -1


def parse_request_block(lines: list[str]) -> PendingRequest:
    """Build a pending request from the lines of a request block."""
    index = _first_content_line(lines)
    if index == -1:
        raise MalformedBlock("request", "empty block")

    tokens = lines[index].split()
    method = tokens[0] if tokens else ""
    url = " ".join(tokens[1:])
    if not method or not url:
        raise MalformedBlock("request", f"bad request line {lines[index].strip()!r}")

    headers, body = extract_headers_and_body(lines[index + 1:])
    return PendingRequest(url=url, method=method, headers=headers, body=body)


def parse_response_status(lines: list[str]) -> tuple[int, str, int]:
    """Return (status, url, index of the status line) for a response block."""
    index = _first_content_line(lines)
    if index == -1:
        raise MalformedBlock("response", "empty block")

    match = STATUS_LINE.match(lines[index].strip())
    if not match:
        raise MalformedBlock("response", f"bad status line {lines[index].strip()!r}")
    return int(match.group(1)), match.group(2), index


class BlockParser:
    """
    Line-at-a-time state machine over REQUEST/RESPONSE blocks.

    Requests are queued per URL in the correlation store; a response is
    paired with the oldest pending request for the same URL and the merged
    record is submitted. Malformed blocks and orphan responses are dropped.
    Callers must feed lines sequentially.
    """

    def __init__(self, store: ICorrelationStore, exclusion_filter: IExclusionFilter):
        self._store = store
        self._filter = exclusion_filter
        self._block = TraceBlock()

    def feed_line(self, raw_line: str) -> None:
        """Advance the state machine by one line."""
        trimmed = raw_line.strip()

        if REQUEST_OPEN in trimmed:
            self._block.open(BlockKind.REQUEST)
            return

        if RESPONSE_OPEN in trimmed:
            self._block.open(BlockKind.RESPONSE)
            return

        if BLOCK_CLOSE in trimmed:
            self._close_block()
            return

        if self._block.is_open:
            self._block.lines.append(raw_line.rstrip("\r\n"))

    def feed_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.feed_line(line)

    def reset(self) -> None:
        """Forget any half-collected block."""
        self._block.close()

    @property
    def state(self) -> BlockKind:
        return self._block.kind

    def _close_block(self) -> None:
        kind, lines = self._block.close()
        try:
            if kind is BlockKind.REQUEST:
                self._process_request(lines)
            elif kind is BlockKind.RESPONSE:
                self._process_response(lines)
        except MalformedBlock as e:
            logger.debug("Dropped %s", e, extra={"context": {"kind": e.kind}})
        except UnmatchedResponse as e:
            logger.warning(
                "Dropped response with no pending request",
                extra={"context": {"kind": "response", "url": e.url}},
            )

    def _process_request(self, lines: list[str]) -> None:
        request = parse_request_block(lines)
        if self._filter.test(request.url):
            logger.debug(
                "Excluded request",
                extra={"context": {"kind": "request", "url": request.url}},
            )
            return
        self._store.enqueue_pending(request)

    def _process_response(self, lines: list[str]) -> None:
        status, url, index = parse_response_status(lines)

        request = self._store.dequeue_pending(url)
        if request is None:
            raise UnmatchedResponse(url)

        # A pattern added while the request was in flight still applies
        if self._filter.test(url):
            logger.debug(
                "Excluded response",
                extra={"context": {"kind": "response", "url": url}},
            )
            return

        headers, body = extract_headers_and_body(lines[index + 1:])
        self._store.submit(
            {
                "timestamp": format_timestamp(request.captured_at),
                "method": request.method,
                "url": url,
                "requestHeaders": request.headers,
                "requestBody": request.body,
                "responseStatus": status,
                "responseTimeMs": 0,  # the block source carries no timing
                "responseHeaders": headers,
                "responseBody": body,
            }
        )
