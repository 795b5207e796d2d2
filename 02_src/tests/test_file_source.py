"""Tests for TraceFileSource."""

import asyncio

import pytest

from tracer.parser import TraceFileSource


class TestTraceFileSourcePoll:
    """Tests for TraceFileSource.poll()."""

    def test_reads_appended_lines(self, tmp_path):
        """Test only new complete lines are delivered."""
        path = tmp_path / "trace.log"
        path.write_text("one\ntw")
        received = []
        source = TraceFileSource(path, received.append)

        source.poll()
        assert received == ["one"]

        with open(path, "a") as f:
            f.write("o\nthree\n")
        source.poll()
        assert received == ["one", "two", "three"]

    def test_handler_error_keeps_remaining_lines(self, tmp_path):
        """Test a failing line does not drop the rest of the read."""
        path = tmp_path / "trace.log"
        path.write_text("one\nbad\nthree\n")
        received = []

        def handler(line):
            if line == "bad":
                raise RuntimeError("boom")
            received.append(line)

        source = TraceFileSource(path, handler)

        assert source.poll() == 3
        assert received == ["one", "three"]

    def test_blank_lines_delivered(self, tmp_path):
        """Test blank lines reach the handler."""
        path = tmp_path / "trace.log"
        path.write_text("a\n\nb\n")
        received = []
        TraceFileSource(path, received.append).poll()
        assert received == ["a", "", "b"]

    def test_detects_truncation(self, tmp_path):
        """Test a shrunk file is read again from the start."""
        path = tmp_path / "trace.log"
        path.write_text("first line\nsecond line\n")
        received = []
        source = TraceFileSource(path, received.append)
        source.poll()

        path.write_text("new\n")
        source.poll()

        assert received[-1] == "new"

    def test_missing_file(self, tmp_path):
        """Test polling a missing file delivers nothing."""
        source = TraceFileSource(tmp_path / "missing.log", lambda line: None)
        assert source.poll() == 0

    def test_multibyte_split_across_polls(self, tmp_path):
        """Test a UTF-8 character split between reads decodes intact."""
        path = tmp_path / "trace.log"
        encoded = "héllo\n".encode("utf-8")
        path.write_bytes(encoded[:2])
        received = []
        source = TraceFileSource(path, received.append)
        source.poll()
        with open(path, "ab") as f:
            f.write(encoded[2:])
        source.poll()
        assert received == ["héllo"]

    def test_truncate(self, tmp_path):
        """Test truncate empties the file and rewinds."""
        path = tmp_path / "trace.log"
        path.write_text("old\n")
        received = []
        source = TraceFileSource(path, received.append)
        source.poll()

        source.truncate()
        assert path.read_text() == ""

        path.write_text("fresh\n")
        source.poll()
        assert received == ["old", "fresh"]


class TestTraceFileSourceLifecycle:
    """Tests for start()/stop()."""

    @pytest.mark.asyncio
    async def test_start_creates_missing_file(self, tmp_path):
        """Test the trace file is created if absent."""
        path = tmp_path / "nested" / "trace.log"
        source = TraceFileSource(path, lambda line: None, poll_interval=0.01)
        await source.start()
        assert path.exists()
        assert source.running
        await source.stop()
        assert not source.running

    @pytest.mark.asyncio
    async def test_start_replays_then_follows(self, tmp_path):
        """Test existing content is replayed and appends are followed."""
        path = tmp_path / "trace.log"
        path.write_text("existing\n")
        received = []
        source = TraceFileSource(path, received.append, poll_interval=0.01)

        await source.start()
        assert received == ["existing"]

        with open(path, "a") as f:
            f.write("appended\n")
        await asyncio.sleep(0.1)
        await source.stop()

        assert received == ["existing", "appended"]
