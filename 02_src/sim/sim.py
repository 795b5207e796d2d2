"""SIM implementation - synthetic HTTP traffic written to the trace file."""

import asyncio
import json
import random
from pathlib import Path
from typing import Protocol

from tracer.logging_config import get_logger
from tracer.parser import BLOCK_CLOSE, REQUEST_OPEN, RESPONSE_OPEN

logger = get_logger(__name__)

ENDPOINTS = [
    ("GET", "https://api.example.test/v1/profile", None, {"id": 42, "name": "Alice"}),
    ("GET", "https://api.example.test/v1/feed?page=1", None, [{"id": 1}, {"id": 2}]),
    ("POST", "https://api.example.test/v1/login", {"user": "alice", "password": "***"}, {"token": "abc"}),
    ("PUT", "https://api.example.test/v1/settings", {"theme": "dark"}, {"ok": True}),
    ("GET", "https://cdn.example.test/assets/logo.png", None, None),
    ("GET", "https://metrics.example.test/collect", None, None),
]


def request_block(method: str, url: str, body: dict | None = None) -> str:
    """Render a request block in the trace file format."""
    lines = [REQUEST_OPEN, f"{method} {url}", "Accept: application/json"]
    if body is not None:
        lines += ["Content-Type: application/json", "", f"Body: {json.dumps(body)}"]
    lines.append(BLOCK_CLOSE)
    return "\n".join(lines) + "\n"


def response_block(status: int, url: str, body: dict | list | None = None) -> str:
    """Render a response block in the trace file format."""
    lines = [RESPONSE_OPEN, f"{status} OK URL: {url}"]
    if body is not None:
        lines += ["Content-Type: application/json", "", f"Body: {json.dumps(body)}"]
    else:
        lines.append("Content-Length: 0")
    lines.append(BLOCK_CLOSE)
    return "\n".join(lines) + "\n"


class ISim(Protocol):
    """Generate test traffic."""

    async def start(self) -> None:
        """Start writing traffic."""
        ...

    async def stop(self) -> None:
        """Stop writing traffic."""
        ...


class Sim:
    """Appends request/response block pairs to a trace file at random intervals."""

    def __init__(self, trace_log: Path, interval: float = 1.5):
        self._trace_log = Path(trace_log)
        self._interval = interval
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start writing traffic."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_scenario())
        logger.info("SIM started, writing to %s", self._trace_log)

    async def stop(self) -> None:
        """Stop writing traffic."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def _append(self, text: str) -> None:
        with open(self._trace_log, "a", encoding="utf-8") as f:
            f.write(text)

    async def _run_scenario(self) -> None:
        """Issue requests, then answer them a little later, sometimes out of order."""
        while self._running:
            try:
                batch = random.sample(ENDPOINTS, k=random.randint(1, 3))
                for method, url, req_body, _ in batch:
                    self._append(request_block(method, url, req_body))

                await asyncio.sleep(random.uniform(0.1, 0.5))

                random.shuffle(batch)
                for _, url, _, resp_body in batch:
                    status = random.choice([200, 200, 200, 201, 404, 500])
                    self._append(response_block(status, url, resp_body))

                await asyncio.sleep(self._interval)

            except asyncio.CancelledError:
                break
            except OSError as e:
                logger.error("SIM write error: %s", e, exc_info=True)
                await asyncio.sleep(self._interval)
