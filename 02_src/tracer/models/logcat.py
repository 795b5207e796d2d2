"""Device log stream data models."""

from enum import Enum


class LogLevel(str, Enum):
    """Minimum severity requested from the log producer."""

    ALL = "all"
    VERBOSE = "verbose"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


# adb logcat filterspec priority letters; ALL adds no filterspec
LEVEL_TOKENS: dict[LogLevel, str] = {
    LogLevel.VERBOSE: "V",
    LogLevel.DEBUG: "D",
    LogLevel.INFO: "I",
    LogLevel.WARN: "W",
    LogLevel.ERROR: "E",
}
