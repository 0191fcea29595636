# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind: Operator Resolution and Backend Dispatch

Binds every node of a computation graph to a kernel drawn from
versioned, per-backend operator catalogs, with explicit fallback and
fail-fast handling of unsupported operators.

Example:
    import kernelbind as kb

    graph = kb.Graph("mlp", opset_imports={"ai.onnx": 13})
    graph.add_node("MatMul", inputs=["x", "w"], outputs=["h"])
    graph.add_node("Erf", inputs=["h"], outputs=["y"])

    context = kb.SessionContext(
        primary=kb.get_backend("vector"),
        opset_imports=graph.opset_imports,
        fallback=kb.get_backend("cpu"),
        fallback_enabled=True,
    )
    with kb.open_session(graph, context) as session:
        for record in session.bindings():
            print(record.node_name, record.backend, record.kernel_type)
"""

__version__ = "0.1.0"
__author__ = "Wahyu Ardiansyah"

from .core import Attributes, Graph, GraphNode, OperatorIdentity, VersionRange
from .catalog import CatalogBuilder, CatalogEntry, OperatorCatalog
from .kernels import Kernel, KernelState
from .backends import (
    Backend,
    BackendRegistry,
    CPUBackend,
    InferenceHandler,
    VectorBackend,
    get_backend,
    list_backends,
    register_backend,
    resolve_backend,
)
from .session import (
    ResolutionRecord,
    SessionContext,
    SessionHandler,
    SessionState,
    open_session,
)
from .config import SessionOptions
from .errors import (
    CatalogConflictError,
    ConfigurationError,
    InvalidOperatorConfigurationError,
    KernelbindError,
    SessionStateError,
    UnsupportedOperatorError,
    ValidationError,
)
from .observability import KernelbindLogger, Verbosity, get_logger, set_verbosity

__all__ = [
    "__version__",
    # Core
    "Attributes",
    "Graph",
    "GraphNode",
    "OperatorIdentity",
    "VersionRange",
    # Catalog
    "CatalogBuilder",
    "CatalogEntry",
    "OperatorCatalog",
    # Kernels
    "Kernel",
    "KernelState",
    # Backends
    "Backend",
    "BackendRegistry",
    "CPUBackend",
    "InferenceHandler",
    "VectorBackend",
    "get_backend",
    "list_backends",
    "register_backend",
    "resolve_backend",
    # Session
    "ResolutionRecord",
    "SessionContext",
    "SessionHandler",
    "SessionState",
    "open_session",
    "SessionOptions",
    # Errors
    "CatalogConflictError",
    "ConfigurationError",
    "InvalidOperatorConfigurationError",
    "KernelbindError",
    "SessionStateError",
    "UnsupportedOperatorError",
    "ValidationError",
    # Observability
    "KernelbindLogger",
    "Verbosity",
    "get_logger",
    "set_verbosity",
]
