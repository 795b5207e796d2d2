"""Pytest configuration and fixtures."""

import stat
import sys
import textwrap
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def request_block(request_line: str, *lines: str) -> list[str]:
    """Lines of a REQUEST block including its delimiters."""
    return ["===== REQUEST =====", request_line, *lines, "========================"]


def response_block(status_line: str, *lines: str) -> list[str]:
    """Lines of a RESPONSE block including its delimiters."""
    return ["===== RESPONSE =====", status_line, *lines, "========================"]


@pytest.fixture
def hub():
    """Create BroadcastHub without a snapshot provider."""
    from tracer.broadcast import BroadcastHub

    return BroadcastHub()


@pytest.fixture
def exclusion_filter(hub):
    """Create empty ExclusionFilter."""
    from tracer.filters import ExclusionFilter

    return ExclusionFilter(hub)


@pytest.fixture
def store(hub):
    """Create CorrelationStore."""
    from tracer.store import CorrelationStore

    return CorrelationStore(hub)


@pytest.fixture
def parser(store, exclusion_filter):
    """Create BlockParser wired to store and filter."""
    from tracer.parser import BlockParser

    return BlockParser(store, exclusion_filter)


@pytest.fixture
def application():
    """Create Application with no adb and no trace file."""
    from tracer.app import Application

    return Application(trace_log=None, adb_path=None, excluded_patterns=[])


@pytest_asyncio.fixture
async def file_application(tmp_path):
    """Create and start Application tailing a temporary trace file."""
    from tracer.app import Application

    app = Application(
        trace_log=tmp_path / "trace.log",
        source="mitm",
        adb_path=None,
        excluded_patterns=[],
        poll_interval=0.02,
    )
    await app.start()
    yield app
    await app.stop()


@pytest.fixture
def fake_adb(tmp_path):
    """
    Write an executable stand-in for adb.

    `devices` lists one device unless NO_DEVICE exists next to the script.
    `logcat` records its arguments in calls.log, prints LINES (or two default
    lines) and then either exits or, if HOLD exists, sleeps.
    """
    script = tmp_path / "adb"
    script.write_text(
        textwrap.dedent(
            f"""\
            #!{sys.executable}
            import os, sys, time
            here = os.path.dirname(os.path.abspath(__file__))
            args = sys.argv[1:]
            if args[:1] == ["devices"]:
                print("List of devices attached")
                if not os.path.exists(os.path.join(here, "NO_DEVICE")):
                    print("emulator-5554\\tdevice")
                sys.exit(0)
            with open(os.path.join(here, "calls.log"), "a") as f:
                f.write(" ".join(args) + "\\n")
            lines_path = os.path.join(here, "LINES")
            if os.path.exists(lines_path):
                sys.stdout.write(open(lines_path).read())
            else:
                sys.stdout.write("10-19 10:00:00.000  100  100 I Tag: first\\n")
                sys.stdout.write("10-19 10:00:00.001  100  100 I Tag: second\\n")
            sys.stdout.flush()
            sys.stderr.write("stderr noise\\n")
            sys.stderr.flush()
            if os.path.exists(os.path.join(here, "HOLD")):
                time.sleep(60)
            """
        )
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script
