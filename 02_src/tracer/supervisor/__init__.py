"""Supervisor module."""

from .adb import build_logcat_args, list_devices, resolve_adb_path, search_path
from .logcat import ILogcatSupervisor, LogcatSupervisor

__all__ = [
    "ILogcatSupervisor",
    "LogcatSupervisor",
    "build_logcat_args",
    "list_devices",
    "resolve_adb_path",
    "search_path",
]
