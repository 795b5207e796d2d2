"""Tail a block-structured trace file into a line callback."""

import asyncio
import codecs
from pathlib import Path
from typing import Callable

from ..line_buffer import LineBuffer
from ..logging_config import get_logger

logger = get_logger(__name__)

LineHandler = Callable[[str], None]


class TraceFileSource:
    """
    Replays an existing trace file, then follows appended bytes.

    The file is polled; when it shrinks (truncated by a clear or by log
    rotation) reading restarts from the beginning. Lines are delivered to
    the handler one at a time from a single task.
    """

    def __init__(
        self,
        path: Path,
        on_line: LineHandler,
        poll_interval: float = 0.25,
    ):
        self._path = Path(path)
        self._on_line = on_line
        self._poll_interval = poll_interval
        self._buffer = LineBuffer()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._offset = 0
        self._task: asyncio.Task | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Replay current content and start following the file."""
        if self.running:
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
            self._offset = 0
            self._buffer.reset()
            self._decoder.reset()
            self.poll()
            logger.info("Loaded existing API calls from trace file %s", self._path)
        except OSError as e:
            logger.error("Error reading trace file %s: %s", self._path, e)

        logger.info("Watching trace file: %s", self._path)
        self._task = asyncio.create_task(self._follow())

    async def stop(self) -> None:
        """Stop following the file."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def truncate(self) -> None:
        """Empty the trace file and restart reading from offset 0."""
        with open(self._path, "w", encoding="utf-8"):
            pass
        self._offset = 0
        self._buffer.reset()
        self._decoder.reset()
        logger.info("Cleared trace file: %s", self._path)

    def poll(self) -> int:
        """Read whatever was appended since the last poll. Returns lines delivered."""
        try:
            size = self._path.stat().st_size
        except FileNotFoundError:
            return 0

        if size < self._offset:
            logger.info("Trace file shrank, reading from the start: %s", self._path)
            self._offset = 0
            self._buffer.reset()
            self._decoder.reset()

        if size == self._offset:
            return 0

        with open(self._path, "rb") as f:
            f.seek(self._offset)
            data = f.read(size - self._offset)
        self._offset += len(data)

        lines = self._buffer.feed(self._decoder.decode(data))
        for line in lines:
            try:
                self._on_line(line)
            except Exception as e:
                # One bad line must not lose the rest of this read
                logger.error("Trace line handler error: %s", e, exc_info=True)
        return len(lines)

    async def _follow(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._poll_interval)
                self.poll()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Trace file tail error: %s", e, exc_info=True)
