"""Supervisor for the adb logcat producer process."""

import asyncio
import codecs
from collections import deque
from typing import Protocol

from ..broadcast import IBroadcastHub
from ..config import DEFAULT_LOGCAT_MAX_LINES, RESTART_BACKOFF_SECONDS
from ..errors import ProducerUnavailable
from ..line_buffer import LineBuffer
from ..logging_config import get_logger
from ..models import EventName, LogLevel
from .adb import build_logcat_args, list_devices, parse_level

logger = get_logger(__name__)

READ_CHUNK_SIZE = 4096
TERMINATE_TIMEOUT_SECONDS = 2.0


class ILogcatSupervisor(Protocol):
    """Owns the lifecycle of the device log producer."""

    async def start(self, pid: str | None = None, level: str | LogLevel = LogLevel.ALL) -> bool:
        """(Re)launch the producer with the given filters."""
        ...

    async def stop(self) -> None:
        """Stop the producer without scheduling a restart."""
        ...

    def kill_now(self) -> None:
        """Synchronously kill a live producer."""
        ...

    def clear_lines(self) -> None:
        """Empty the line buffer and notify observers."""
        ...

    @property
    def lines(self) -> list[str]:
        """Buffered producer lines, oldest first."""
        ...


class LogcatSupervisor:
    """
    Runs `adb logcat`, buffers its lines and restarts it after crashes.

    Every intentional start/stop bumps a generation counter. Exit handlers
    and backoff timers capture the generation they belong to and do nothing
    once it is stale, so a superseded process can never revive itself with
    old filter parameters.
    """

    def __init__(
        self,
        hub: IBroadcastHub,
        adb_path: str | None,
        max_lines: int = DEFAULT_LOGCAT_MAX_LINES,
        restart_delay: float = RESTART_BACKOFF_SECONDS,
        require_device: bool = True,
    ):
        self._hub = hub
        self._adb_path = adb_path
        self._max_lines = max_lines
        self._restart_delay = restart_delay
        self._require_device = require_device

        self._lines: deque[str] = deque(maxlen=max_lines)
        self._process: asyncio.subprocess.Process | None = None
        self._stdout_task: asyncio.Task | None = None
        self._stderr_task: asyncio.Task | None = None
        self._restart_task: asyncio.Task | None = None
        self._generation = 0
        self._stopped = False

        self._pid_filter: str | None = None
        self._level = LogLevel.ALL

    async def start(self, pid: str | None = None, level: str | LogLevel = LogLevel.ALL) -> bool:
        """(Re)launch the producer with the given filters."""
        level = parse_level(level)
        self._generation += 1
        generation = self._generation
        self._stopped = False
        self._cancel_restart()

        try:
            await self._ensure_available()
        except ProducerUnavailable as e:
            logger.warning("%s", e)
            if generation == self._generation:
                # Keep the requested filter so it is reported and reused later
                self._pid_filter = pid
                self._level = level
            return False
        if generation != self._generation:
            return False

        if self._process:
            logger.info(
                "Stopping existing logcat stream (was filtering: %s, level %s)",
                self._pid_filter or "all processes",
                self._level.value,
            )
        await self._terminate()
        if generation != self._generation:
            return False

        # Observers must not see old lines mixed with the new filter context
        self.clear_lines()
        self._pid_filter = pid
        self._level = level

        args = build_logcat_args(pid, level)
        logger.info(
            "Starting adb logcat (%s, level %s)",
            f"PID {pid}" if pid else "all processes",
            level.value,
        )
        try:
            process = await asyncio.create_subprocess_exec(
                self._adb_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Failed to spawn adb: %s", e)
            self._schedule_restart(generation)
            return False

        if generation != self._generation:
            # Superseded while spawning
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            return False

        self._process = process
        self._stdout_task = asyncio.create_task(self._read_stdout(process, generation))
        self._stderr_task = asyncio.create_task(self._read_stderr(process))
        return True

    async def stop(self) -> None:
        """Stop the producer without scheduling a restart."""
        self._generation += 1
        self._stopped = True
        self._cancel_restart()
        await self._terminate()

    def kill_now(self) -> None:
        """Synchronously kill a live producer."""
        process = self._process
        if process and process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            logger.info("Killed logcat process %s", process.pid)

    def clear_lines(self) -> None:
        """Empty the line buffer and notify observers."""
        self._lines.clear()
        self._hub.publish(EventName.LOGCAT_CLEARED)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def pid_filter(self) -> str | None:
        return self._pid_filter

    @property
    def level(self) -> LogLevel:
        return self._level

    @property
    def max_lines(self) -> int:
        return self._max_lines

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def available(self) -> bool:
        return self._adb_path is not None

    async def _ensure_available(self) -> None:
        if not self._adb_path:
            raise ProducerUnavailable(
                "adb not found on PATH; logcat streaming disabled. "
                "Install Android platform-tools or add adb to PATH."
            )
        if self._require_device and not await list_devices(self._adb_path):
            raise ProducerUnavailable("No connected device detected; logcat streaming skipped.")

    def _handle_lines(self, lines: list[str]) -> None:
        new_lines = [line for line in lines if line.strip()]
        if not new_lines:
            return
        self._lines.extend(new_lines)
        self._hub.publish(EventName.LOGCAT_UPDATE, {"lines": new_lines})

    async def _read_stdout(self, process: asyncio.subprocess.Process, generation: int) -> None:
        buffer = LineBuffer()
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                chunk = await process.stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._handle_lines(buffer.feed(decoder.decode(chunk)))
            self._handle_lines(buffer.feed(decoder.decode(b"", final=True)) + [buffer.flush()])
            code = await process.wait()
        except asyncio.CancelledError:
            # Detached by an intentional restart or stop
            return

        logger.warning(
            "Logcat process exited with code %s",
            code,
            extra={"context": {"pid_filter": self._pid_filter, "level": self._level.value}},
        )
        if self._process is process:
            self._process = None
        self._schedule_restart(generation)

    async def _read_stderr(self, process: asyncio.subprocess.Process) -> None:
        try:
            async for line in process.stderr:
                text = line.decode("utf-8", errors="replace").rstrip()
                if text:
                    logger.error("Logcat stderr: %s", text)
        except asyncio.CancelledError:
            return

    def _schedule_restart(self, generation: int) -> None:
        if self._stopped or generation != self._generation:
            return
        self._restart_task = asyncio.create_task(self._restart_after(generation))

    async def _restart_after(self, generation: int) -> None:
        try:
            await asyncio.sleep(self._restart_delay)
        except asyncio.CancelledError:
            return
        if self._stopped or generation != self._generation:
            logger.debug("Skipping stale logcat restart (generation %s)", generation)
            return
        # start() cancels the pending restart task, which is this one
        self._restart_task = None
        logger.info("Restarting logcat stream...")
        await self.start(self._pid_filter, self._level)

    def _cancel_restart(self) -> None:
        if self._restart_task and not self._restart_task.done():
            self._restart_task.cancel()
        self._restart_task = None

    async def _terminate(self) -> None:
        """Detach the readers, then end the process."""
        for task in (self._stdout_task, self._stderr_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._stdout_task = None
        self._stderr_task = None

        process, self._process = self._process, None
        if process is None or process.returncode is not None:
            return
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), TERMINATE_TIMEOUT_SECONDS)
        except ProcessLookupError:
            pass
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
