"""Integration tests: trace file and logcat producer through to observers."""

import asyncio
import sys

import pytest
import pytest_asyncio

from conftest import request_block, response_block
from tracer.app import Application
from tracer.models import EventName


async def wait_for(predicate, timeout: float = 5.0) -> None:
    """Poll until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


def append(path, lines: list[str]) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")


@pytest_asyncio.fixture
async def full_application(tmp_path, fake_adb):
    """Application with a trace file and a long-running fake adb."""
    (fake_adb.parent / "HOLD").touch()
    app = Application(
        trace_log=tmp_path / "trace.log",
        source="mitm",
        adb_path=str(fake_adb),
        excluded_patterns=["metrics"],
        poll_interval=0.02,
    )
    await app.start()
    yield app
    await app.stop()


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX script as adb")
class TestFullPipeline:
    """Tests with both sources running."""

    @pytest.mark.asyncio
    async def test_observer_sees_traffic_and_device_logs(self, full_application):
        """Test one subscriber receives transactions and log lines."""
        app = full_application
        await wait_for(lambda: len(app.supervisor.lines) == 2)

        subscriber = app.hub.subscribe()
        init = subscriber.drain()[0]
        assert init.name is EventName.INIT
        assert init.payload["excludedPatterns"] == ["metrics"]
        assert len(init.payload["logcat"]) == 2

        append(app.trace_log, request_block("POST http://api.test/login", "Body: {\"u\":1}"))
        append(app.trace_log, request_block("GET http://metrics.test/collect"))
        append(app.trace_log, response_block("401 Unauthorized URL: http://api.test/login"))
        append(app.trace_log, response_block("200 URL: http://metrics.test/collect"))

        await wait_for(lambda: len(app.store.history) == 1)
        await asyncio.sleep(0.1)

        assert len(app.store.history) == 1
        call = app.store.history[0]
        assert call.method == "POST"
        assert call.response_status == 401
        assert call.request_body_parsed == {"u": 1}

        names = [e.name for e in subscriber.drain()]
        assert names == [EventName.NEW_LOG]

    @pytest.mark.asyncio
    async def test_filter_change_replaces_lines(self, full_application, fake_adb):
        """Test a pid/level change clears old lines and restarts the producer."""
        app = full_application
        await wait_for(lambda: len(app.supervisor.lines) == 2)
        subscriber = app.hub.subscribe()
        subscriber.drain()

        (fake_adb.parent / "LINES").write_text("10-19 10:00:01.000 4321 4321 E App: boom\n")
        assert await app.supervisor.start("4321", "error")

        await wait_for(lambda: app.supervisor.lines == ["10-19 10:00:01.000 4321 4321 E App: boom"])
        events = subscriber.drain()
        assert events[0].name is EventName.LOGCAT_CLEARED
        assert events[-1].name is EventName.LOGCAT_UPDATE


class TestFileOnlyPipeline:
    """Tests with only the trace file source."""

    @pytest.mark.asyncio
    async def test_exclusion_added_while_in_flight(self, file_application):
        """Test a request excluded between request and response is never recorded."""
        app = file_application
        append(app.trace_log, request_block("GET http://ads.test/banner"))
        await wait_for(lambda: app.store.pending_count() == 1)

        app.exclusion_filter.add("ads")
        append(app.trace_log, response_block("200 URL: http://ads.test/banner"))
        await wait_for(lambda: app.store.pending_count() == 0)

        assert app.store.history == []

    @pytest.mark.asyncio
    async def test_duplicate_urls_pair_in_order(self, file_application):
        """Test concurrent requests to one URL pair first-in first-out."""
        app = file_application
        append(app.trace_log, request_block("GET http://api.test/poll", "X-Seq: 1"))
        append(app.trace_log, request_block("GET http://api.test/poll", "X-Seq: 2"))
        append(app.trace_log, response_block("200 URL: http://api.test/poll", "Body: first"))
        append(app.trace_log, response_block("204 URL: http://api.test/poll", "Body: second"))

        await wait_for(lambda: len(app.store.history) == 2)

        newest, oldest = app.store.history
        assert oldest.request_headers["X-Seq"] == "1"
        assert oldest.response_body == "first"
        assert newest.request_headers["X-Seq"] == "2"
        assert newest.response_status == 204

    @pytest.mark.asyncio
    async def test_clear_then_new_traffic(self, file_application):
        """Test traffic written after a clear is parsed from the emptied file."""
        app = file_application
        append(app.trace_log, request_block("GET http://a"))
        append(app.trace_log, response_block("200 URL: http://a"))
        await wait_for(lambda: len(app.store.history) == 1)

        assert app.clear_history() == 1
        append(app.trace_log, request_block("GET http://b"))
        append(app.trace_log, response_block("200 URL: http://b"))

        await wait_for(lambda: len(app.store.history) == 1)
        assert app.store.history[0].url == "http://b"
