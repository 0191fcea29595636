# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Observability Module

Structured logging for session events.
"""

from .logger import (
    KernelbindLogger,
    LogEntry,
    Verbosity,
    get_logger,
    set_verbosity,
)

__all__ = [
    "KernelbindLogger",
    "LogEntry",
    "Verbosity",
    "get_logger",
    "set_verbosity",
]
