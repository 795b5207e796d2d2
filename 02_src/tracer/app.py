"""Application bootstrap and lifecycle management."""

import atexit
import os
from pathlib import Path
from typing import Any, Protocol

from .broadcast import BroadcastHub
from .config import (
    DEFAULT_LOGCAT_MAX_LINES,
    DEFAULT_PENDING_TTL_SECONDS,
    env_float,
    env_int,
    parse_excluded_patterns,
    resolve_trace_log_path,
)
from .filters import ExclusionFilter
from .logging_config import get_logger
from .parser import BlockParser, TraceFileSource
from .store import CorrelationStore
from .supervisor import LogcatSupervisor, resolve_adb_path

logger = get_logger(__name__)

_UNSET: Any = object()


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Start the trace sources."""
        ...

    async def stop(self) -> None:
        """Stop the trace sources."""
        ...

    async def reset(self) -> None:
        """Clear history, pending requests and the log line buffer."""
        ...


class Application:
    """
    Wires the engine: sources -> parser -> filter -> store -> hub.

    Components are built in the constructor so an instance can be inspected
    and fed directly in tests; start() only launches the external sources.
    """

    def __init__(
        self,
        trace_log: str | Path | None = _UNSET,
        source: str | None = None,
        adb_path: str | None = _UNSET,
        excluded_patterns: list[str] | None = None,
        logcat_max_lines: int | None = None,
        pending_ttl: float | None = None,
        require_device: bool = True,
        poll_interval: float = 0.25,
    ):
        if trace_log is _UNSET:
            trace_log = os.getenv("TRACER_LOG")
        self._trace_log = resolve_trace_log_path(trace_log)
        self._source = (source if source is not None else os.getenv("TRACER_SOURCE", "")).lower()

        if adb_path is _UNSET:
            adb_path = resolve_adb_path()
        if excluded_patterns is None:
            excluded_patterns = parse_excluded_patterns(os.getenv("TRACER_EXCLUDES"))
        if logcat_max_lines is None:
            logcat_max_lines = env_int("LOGCAT_MAX_LINES", DEFAULT_LOGCAT_MAX_LINES)
        if pending_ttl is None:
            pending_ttl = env_float("TRACER_PENDING_TTL", DEFAULT_PENDING_TTL_SECONDS)

        # 1. Hub (no dependencies; snapshot provider set once the rest exists)
        self._hub = BroadcastHub()

        # 2. Filter and store (depend on Hub)
        self._exclusion_filter = ExclusionFilter(self._hub, excluded_patterns)
        self._store = CorrelationStore(self._hub, pending_ttl=pending_ttl)

        # 3. Parser (depends on Store + Filter)
        self._parser = BlockParser(self._store, self._exclusion_filter)

        # 4. Sources
        self._file_source: TraceFileSource | None = None
        if self._trace_log:
            self._file_source = TraceFileSource(
                self._trace_log, self._parser.feed_line, poll_interval=poll_interval
            )
        self._supervisor = LogcatSupervisor(
            self._hub,
            adb_path,
            max_lines=logcat_max_lines,
            require_device=require_device,
        )

        self._hub.set_snapshot_provider(self.snapshot)
        self._started = False

    async def start(self) -> None:
        """Start the trace sources."""
        logger.info("Starting application")

        if self._file_source:
            await self._file_source.start()
        else:
            logger.warning("TRACER_LOG not provided; trace file parsing disabled")

        await self._supervisor.start()
        atexit.register(self._supervisor.kill_now)
        self._started = True
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Stop the trace sources."""
        await self._supervisor.stop()
        if self._file_source:
            await self._file_source.stop()
        if self._started:
            atexit.unregister(self._supervisor.kill_now)
            self._started = False
        logger.info("Application stopped")

    async def reset(self) -> None:
        """Clear history, pending requests and the log line buffer."""
        self.clear_history()
        self._supervisor.clear_lines()
        self._parser.reset()
        logger.info("Reset complete")

    def clear_history(self) -> int:
        """Clear transactions; also empties the trace file when it is the primary source."""
        if self.uses_file_source and self._file_source:
            self._file_source.truncate()
        cleared = self._store.clear()
        logger.info("API logs cleared (removed %d logs)", cleared)
        return cleared

    def snapshot(self) -> dict[str, Any]:
        """Replay payload for a newly connected observer."""
        return {
            "apiCalls": self._store.history_payload(),
            "excludedPatterns": self._exclusion_filter.patterns,
            "logcat": self._supervisor.lines,
        }

    @property
    def uses_file_source(self) -> bool:
        return self._source == "mitm" and self._trace_log is not None

    @property
    def source(self) -> str:
        return self._source or "api"

    @property
    def trace_log(self) -> Path | None:
        return self._trace_log

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    @property
    def exclusion_filter(self) -> ExclusionFilter:
        return self._exclusion_filter

    @property
    def store(self) -> CorrelationStore:
        return self._store

    @property
    def parser(self) -> BlockParser:
        return self._parser

    @property
    def supervisor(self) -> LogcatSupervisor:
        return self._supervisor

    @property
    def file_source(self) -> TraceFileSource | None:
        return self._file_source
