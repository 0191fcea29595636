# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Structured Logger for Kernelbind

Structured session events (resolution, fallback, disposal) with optional
JSON output. Module-level diagnostics elsewhere in the package go through
the standard ``logging`` module under the ``kernelbind`` namespace.

Example:
    from kernelbind.observability import KernelbindLogger, Verbosity

    logger = KernelbindLogger.get()
    logger.set_verbosity(Verbosity.DEBUG)
    logger.info("Operator resolved", component="session", op_type="Add")
"""

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Callable, Optional, TextIO

_std_logger = logging.getLogger(__name__)

VERBOSITY_ENV = "KERNELBIND_VERBOSITY"


class Verbosity(IntEnum):
    """
    Logging verbosity levels.

    Uses IntEnum for numeric comparison (e.g., if verbosity >= INFO).
    """

    SILENT = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4


@dataclass
class LogEntry:
    """
    Structured log entry.

    Attributes:
        level: Log level (ERROR, WARNING, INFO, DEBUG)
        message: Log message
        timestamp: ISO format timestamp
        component: Source component (session, backend, cli)
        session: Optional session identifier
        operation: Optional operation name
        duration_ms: Optional duration in milliseconds
        extra: Additional context fields
    """

    level: str
    message: str
    timestamp: str
    component: str = "kernelbind"
    session: Optional[str] = None
    operation: Optional[str] = None
    duration_ms: Optional[float] = None
    extra: dict = field(default_factory=dict)

    def to_json(self) -> str:
        data = {k: v for k, v in asdict(self).items() if v is not None and v != {}}
        return json.dumps(data, default=str)

    def to_text(self) -> str:
        """Render as `[LEVEL] [component] message session=... (N.NNms)`."""
        parts = [f"[{self.level}]", f"[{self.component}]", self.message]
        if self.session is not None:
            parts.append(f"session={self.session}")
        if self.duration_ms is not None:
            parts.append(f"({self.duration_ms:.2f}ms)")
        return " ".join(parts)


def _parse_verbosity(text: str, default: Verbosity) -> Verbosity:
    try:
        return Verbosity(int(text))
    except ValueError:
        _std_logger.warning("ignoring invalid %s=%r", VERBOSITY_ENV, text)
        return default


class KernelbindLogger:
    """
    Structured logger for Kernelbind.

    Singleton pattern keeps one verbosity and output configuration for
    every session in the process.

    Example:
        logger = KernelbindLogger.get()
        logger.set_verbosity(Verbosity.DEBUG)
        logger.debug("Kernel bound", component="session")
    """

    _instance: Optional["KernelbindLogger"] = None

    def __init__(self):
        self._verbosity = Verbosity.INFO
        self._output: TextIO = sys.stderr
        self._json_format = False
        self._handlers: list[Callable[[LogEntry], None]] = []

        env_verbosity = os.environ.get(VERBOSITY_ENV)
        if env_verbosity is not None:
            self._verbosity = _parse_verbosity(env_verbosity, self._verbosity)

    @classmethod
    def get(cls) -> "KernelbindLogger":
        """Get the singleton logger instance."""
        if cls._instance is None:
            cls._instance = KernelbindLogger()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    def set_verbosity(self, level: int) -> None:
        """
        Set verbosity level.

        Args:
            level: Verbosity level (0-4 or Verbosity enum)
        """
        self._verbosity = Verbosity(max(Verbosity.SILENT, min(Verbosity.DEBUG, int(level))))

    def get_verbosity(self) -> Verbosity:
        """Get current verbosity level."""
        return self._verbosity

    def set_json_format(self, enabled: bool) -> None:
        """Enable or disable JSON output format."""
        self._json_format = enabled

    def set_output(self, output: TextIO) -> None:
        """Set output stream."""
        self._output = output

    def add_handler(self, handler: Callable[[LogEntry], None]) -> None:
        """Add a custom log handler."""
        self._handlers.append(handler)

    def _emit(self, entry: LogEntry) -> None:
        render = entry.to_json if self._json_format else entry.to_text
        self._write(render() + "\n")

        for handler in self._handlers:
            handler(entry)

    def _log(self, level: Verbosity, message: str, context: dict) -> None:
        if self._verbosity < level:
            return
        self._emit(
            LogEntry(
                level=level.name,
                message=message,
                timestamp=datetime.now().isoformat(),
                component=context.pop("component", "kernelbind"),
                session=context.pop("session", None),
                operation=context.pop("operation", None),
                duration_ms=context.pop("duration_ms", None),
                extra=context,
            )
        )

    def debug(self, message: str, **context) -> None:
        """Log debug message."""
        self._log(Verbosity.DEBUG, message, context)

    def info(self, message: str, **context) -> None:
        """Log info message."""
        self._log(Verbosity.INFO, message, context)

    def warning(self, message: str, **context) -> None:
        """Log warning message."""
        self._log(Verbosity.WARNING, message, context)

    def error(self, message: str, **context) -> None:
        """Log error message."""
        self._log(Verbosity.ERROR, message, context)

    def session_summary(self, stats: dict) -> None:
        """
        Log a session resolution summary (formatted box output).

        Shown at DEBUG level.
        """
        if self._verbosity < Verbosity.DEBUG:
            return

        session = stats.get("session", "N/A")
        primary = stats.get("primary", "N/A")
        fallback = stats.get("fallback") or "-"
        resolved = stats.get("resolved", 0)
        fallbacks = stats.get("fallbacks", 0)
        resolve_ms = stats.get("resolve_ms", 0.0)

        summary = f"""
+-----------------------------------------------------------+
| Kernelbind Session Resolved                               |
+-----------------------------------------------------------+
| Session:    {session:<46}|
| Primary:    {primary:<46}|
| Fallback:   {fallback:<46}|
| Kernels:    {resolved:<46}|
| Fallbacks:  {fallbacks:<46}|
| Time:       {resolve_ms:<44.2f}ms|
+-----------------------------------------------------------+
"""
        self._write(summary)

    def _write(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()


def get_logger() -> KernelbindLogger:
    """Get the global Kernelbind logger."""
    return KernelbindLogger.get()


def set_verbosity(level: int) -> None:
    """
    Set global verbosity level.

    Args:
        level: Verbosity level (0=SILENT, 1=ERROR, 2=WARNING, 3=INFO, 4=DEBUG)
    """
    KernelbindLogger.get().set_verbosity(level)
