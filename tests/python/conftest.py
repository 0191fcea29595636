# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Pytest configuration for Kernelbind Python tests.
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to sys.path so we can import kernelbind
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from kernelbind.backends import BackendRegistry  # noqa: E402
from kernelbind.observability import KernelbindLogger  # noqa: E402

# Skip test modules that require optional dependencies not installed
collect_ignore = []

# Check for hypothesis
try:
    import hypothesis  # noqa: F401
except ImportError:
    collect_ignore.append("test_property_based.py")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Give every test a fresh backend registry and a quiet logger."""
    BackendRegistry.reset()
    KernelbindLogger.reset()
    KernelbindLogger.get().set_output(io.StringIO())
    yield
    BackendRegistry.reset()
    KernelbindLogger.reset()


@pytest.fixture
def log_stream():
    """Capture structured log output at DEBUG verbosity."""
    stream = io.StringIO()
    logger = KernelbindLogger.get()
    logger.set_output(stream)
    logger.set_verbosity(4)
    return stream


@pytest.fixture
def cpu():
    return BackendRegistry().require("cpu")


@pytest.fixture
def vector():
    return BackendRegistry().require("vector")
