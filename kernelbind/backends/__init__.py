# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Backend Package

Backends own per-domain operator catalogs and answer capability queries:
- CPU (numpy reference kernels, universal fallback)
- Vector (vectorized float32 kernels, narrow coverage)

Usage:
    import kernelbind.backends as kb

    cpu = kb.get_backend("cpu")
    cpu.supports("Erf", "ai.onnx", 13)

    # First usable backend from hints
    backend = kb.resolve_backend(["vector", "cpu"])
"""

from .base import Backend, InferenceHandler
from .cpu import CPUBackend
from .registry import (
    BackendRegistry,
    get_backend,
    list_backends,
    register_backend,
    resolve_backend,
)
from .vector import VectorBackend

__all__ = [
    "Backend",
    "InferenceHandler",
    "CPUBackend",
    "VectorBackend",
    "BackendRegistry",
    "get_backend",
    "list_backends",
    "register_backend",
    "resolve_backend",
]
