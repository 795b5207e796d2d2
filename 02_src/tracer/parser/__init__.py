"""Parser module."""

from .block_parser import (
    BLOCK_CLOSE,
    REQUEST_OPEN,
    RESPONSE_OPEN,
    BlockParser,
    parse_request_block,
    parse_response_status,
)
from .extract import extract_headers_and_body
from .file_source import TraceFileSource

__all__ = [
    "BLOCK_CLOSE",
    "REQUEST_OPEN",
    "RESPONSE_OPEN",
    "BlockParser",
    "parse_request_block",
    "parse_response_status",
    "extract_headers_and_body",
    "TraceFileSource",
]
