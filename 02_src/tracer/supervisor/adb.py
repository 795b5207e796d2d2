"""adb binary resolution and logcat launch arguments."""

import asyncio
import os
import shutil
from pathlib import Path

from ..errors import MutationRejected
from ..logging_config import get_logger
from ..models import LEVEL_TOKENS, LogLevel

logger = get_logger(__name__)


def _well_known_dirs() -> list[str]:
    home = Path.home()
    return [
        "/usr/local/bin",
        "/opt/homebrew/bin",
        "/usr/bin",
        "/bin",
        "/usr/sbin",
        "/sbin",
        str(home / "Library/Android/sdk/platform-tools"),
        str(home / "Android/Sdk/platform-tools"),
    ]


def search_path() -> str:
    """PATH extended with the usual platform-tools install locations."""
    entries = [os.getenv("PATH", "")] + _well_known_dirs()
    return os.pathsep.join(e for e in entries if e)


def resolve_adb_path(override: str | None = None) -> str | None:
    """
    Locate the adb binary.

    Search order: explicit override (argument or TRACER_ADB_PATH), the
    extended PATH, then the well-known install directories.

    Returns:
        Absolute path to adb, or None if it cannot be found
    """
    explicit = override or os.getenv("TRACER_ADB_PATH")
    if explicit and Path(explicit).is_file():
        return explicit

    found = shutil.which("adb", path=search_path())
    if found:
        return found

    for directory in _well_known_dirs():
        candidate = Path(directory) / "adb"
        if candidate.is_file():
            return str(candidate)
    return None


def parse_level(level: str | LogLevel | None) -> LogLevel:
    """Validate a level name; None means all."""
    if level is None:
        return LogLevel.ALL
    try:
        return LogLevel(str(level.value if isinstance(level, LogLevel) else level).lower())
    except ValueError:
        raise MutationRejected(f"Unknown log level: {level}")


def build_logcat_args(pid: str | None = None, level: LogLevel = LogLevel.ALL) -> list[str]:
    """Arguments for a timestamped logcat stream with optional pid and level filters."""
    args = ["logcat", "-v", "threadtime"]
    if pid:
        args.append(f"--pid={pid}")
    token = LEVEL_TOKENS.get(level)
    if token:
        args.append(f"*:{token}")
    return args


async def list_devices(adb_path: str) -> list[str]:
    """Serials of devices in the ready state, per `adb devices`."""
    try:
        process = await asyncio.create_subprocess_exec(
            adb_path,
            "devices",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await process.communicate()
    except OSError as e:
        logger.warning("adb devices failed: %s", e)
        return []

    devices = []
    for line in stdout.decode("utf-8", errors="replace").splitlines()[1:]:
        line = line.strip()
        if line.endswith("\tdevice"):
            devices.append(line.split("\t")[0])
    return devices
