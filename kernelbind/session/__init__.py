# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Session Package

Per-session dispatch of graph nodes to backend kernels.
"""

from .context import SessionContext
from .handler import ResolutionRecord, SessionHandler, SessionState, open_session

__all__ = [
    "SessionContext",
    "SessionHandler",
    "SessionState",
    "ResolutionRecord",
    "open_session",
]
