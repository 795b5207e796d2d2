"""Tests for Application."""

import asyncio

import pytest

from conftest import request_block, response_block
from tracer.app import Application
from tracer.models import EventName


class TestApplicationInit:
    """Tests for Application construction."""

    def test_components_wired(self, application):
        """Test components share the same hub."""
        assert application.store._hub is application.hub
        assert application.exclusion_filter._hub is application.hub
        assert application.parser._store is application.store
        assert application.parser._filter is application.exclusion_filter
        assert application.supervisor._hub is application.hub
        assert application.file_source is None

    def test_reads_environment(self, monkeypatch, tmp_path):
        """Test defaults come from the environment."""
        monkeypatch.setenv("TRACER_LOG", str(tmp_path / "t.log"))
        monkeypatch.setenv("TRACER_SOURCE", "MITM")
        monkeypatch.setenv("TRACER_EXCLUDES", "a, b ,,")
        monkeypatch.setenv("LOGCAT_MAX_LINES", "10")

        app = Application(adb_path=None)

        assert app.trace_log == tmp_path / "t.log"
        assert app.uses_file_source
        assert app.source == "mitm"
        assert app.exclusion_filter.patterns == ["a", "b"]
        assert app.supervisor.max_lines == 10

    def test_source_defaults_to_api(self, monkeypatch):
        """Test the reported source without TRACER_SOURCE."""
        monkeypatch.delenv("TRACER_SOURCE", raising=False)
        app = Application(trace_log=None, adb_path=None)
        assert app.source == "api"
        assert not app.uses_file_source

    def test_independent_instances(self):
        """Test two applications share no state."""
        first = Application(trace_log=None, adb_path=None, excluded_patterns=[])
        second = Application(trace_log=None, adb_path=None, excluded_patterns=[])
        first.exclusion_filter.add("x")
        assert second.exclusion_filter.patterns == []


class TestApplicationSnapshot:
    """Tests for the replay snapshot."""

    def test_late_joiner_gets_history_without_duplicates(self, application):
        """Test a subscriber after 5 transactions sees them once, in order."""
        for n in range(5):
            application.parser.feed_lines(request_block(f"GET http://api.test/{n}"))
            application.parser.feed_lines(response_block(f"200 URL: http://api.test/{n}"))

        subscriber = application.hub.subscribe()
        events = subscriber.drain()

        assert len(events) == 1
        init = events[0]
        assert init.name is EventName.INIT
        urls = [call["url"] for call in init.payload["apiCalls"]]
        assert urls == [f"http://api.test/{n}" for n in reversed(range(5))]
        assert init.payload["excludedPatterns"] == []
        assert init.payload["logcat"] == []

        application.parser.feed_lines(request_block("GET http://api.test/new"))
        application.parser.feed_lines(response_block("200 URL: http://api.test/new"))
        new_events = subscriber.drain()
        assert [e.payload["url"] for e in new_events] == ["http://api.test/new"]


class TestApplicationLifecycle:
    """Tests for start/stop/reset."""

    @pytest.mark.asyncio
    async def test_start_without_sources(self, application):
        """Test start degrades gracefully with nothing configured."""
        await application.start()
        assert not application.supervisor.running
        await application.stop()

    @pytest.mark.asyncio
    async def test_file_pipeline(self, file_application):
        """Test blocks appended to the trace file become transactions."""
        with open(file_application.trace_log, "a") as f:
            f.write("\n".join(request_block("GET http://api.test/x")) + "\n")
            f.write("\n".join(response_block("200 URL: http://api.test/x", "Body: {}")) + "\n")

        for _ in range(100):
            if file_application.store.history:
                break
            await asyncio.sleep(0.02)

        assert file_application.store.history[0].url == "http://api.test/x"

    @pytest.mark.asyncio
    async def test_existing_file_replayed(self, tmp_path):
        """Test blocks already in the file are loaded on start."""
        path = tmp_path / "trace.log"
        path.write_text(
            "\n".join(request_block("GET http://a") + response_block("200 URL: http://a")) + "\n"
        )
        app = Application(trace_log=path, source="mitm", adb_path=None, excluded_patterns=[])
        await app.start()
        try:
            assert len(app.store.history) == 1
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_undecodable_body_in_file_does_not_block_start(self, tmp_path):
        """Test startup replay survives a deeply nested body and keeps parsing."""
        nested = "[" * 100000
        lines = request_block("POST http://deep", f"Body: {nested}")
        lines += response_block("200 URL: http://deep", f"Body: {nested}")
        lines += request_block("GET http://after") + response_block("200 URL: http://after")
        path = tmp_path / "trace.log"
        path.write_text("\n".join(lines) + "\n")

        app = Application(trace_log=path, source="mitm", adb_path=None, excluded_patterns=[])
        await app.start()
        try:
            assert [call.url for call in app.store.history] == ["http://after", "http://deep"]
        finally:
            await app.stop()

    @pytest.mark.asyncio
    async def test_clear_truncates_primary_file(self, file_application):
        """Test clearing history also empties the trace file."""
        with open(file_application.trace_log, "a") as f:
            f.write("leftover\n")

        file_application.clear_history()

        assert file_application.trace_log.read_text() == ""

    def test_clear_keeps_secondary_file(self, tmp_path):
        """Test the file is left alone when it is not the primary source."""
        path = tmp_path / "trace.log"
        path.write_text("keep\n")
        app = Application(trace_log=path, source="", adb_path=None, excluded_patterns=[])

        app.clear_history()

        assert path.read_text() == "keep\n"

    @pytest.mark.asyncio
    async def test_reset(self, application):
        """Test reset clears history, pending requests and lines."""
        application.parser.feed_lines(request_block("GET http://a"))
        application.parser.feed_lines(response_block("200 URL: http://a"))
        application.parser.feed_lines(request_block("GET http://pending"))
        application.parser.feed_line("===== REQUEST =====")
        subscriber = application.hub.subscribe()
        subscriber.drain()

        await application.reset()

        assert application.store.history == []
        assert application.store.pending_count() == 0
        assert application.supervisor.lines == []
        names = [e.name for e in subscriber.drain()]
        assert names == [EventName.LOGS_CLEARED, EventName.LOGCAT_CLEARED]
