"""Partial-line carry-over for chunked text streams."""


class LineBuffer:
    """Accumulates text chunks and hands back only completed lines.

    A trailing fragment without a line terminator is held until the chunk
    that completes it arrives.
    """

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, chunk: str) -> list[str]:
        """Add a chunk, return the lines it completed (terminators stripped)."""
        self._pending += chunk
        parts = self._pending.split("\n")
        self._pending = parts.pop()
        return [part[:-1] if part.endswith("\r") else part for part in parts]

    def flush(self) -> str:
        """Return and forget the unterminated remainder."""
        rest, self._pending = self._pending, ""
        return rest

    def reset(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending
