# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Session Handler

Binds every node of a graph to an initialized kernel using the session's
dispatch policy:

1. Build the node's identity (op_type, domain, version). Per-node domain
   and version override the session's opset imports.
2. Look the identity up in the primary backend.
3. On a miss, look it up in the fallback backend when fallback is
   enabled and configured.
4. A miss everywhere is an UnsupportedOperatorError.
5. A hit is instantiated and initialized with the node's attributes.
   Initialization failure is an InvalidOperatorConfigurationError.

There is no scoring between backends: the primary always wins when it
can serve the identity, so resolution is deterministic for a fixed
catalog state and configuration.
"""

import itertools
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from ..backends.base import Backend, InferenceHandler
from ..catalog import CatalogEntry
from ..core.graph import Graph
from ..core.node import GraphNode
from ..core.types import OperatorIdentity, normalize_domain
from ..errors import (
    InvalidOperatorConfigurationError,
    SessionStateError,
    UnsupportedOperatorError,
)
from ..kernels.base import Kernel
from ..observability import get_logger
from .context import SessionContext


class SessionState(Enum):
    """Session lifecycle states."""

    UNINITIALIZED = auto()
    ACTIVE = auto()
    DISPOSED = auto()


@dataclass(frozen=True)
class ResolutionRecord:
    """Which backend and kernel type served one node."""

    node_name: str
    identity: OperatorIdentity
    backend: str
    kernel_type: str
    used_fallback: bool = False


_session_ids = itertools.count(1)


class SessionHandler:
    """
    Resolves graph nodes to kernels for one inference session.

    The handler owns every kernel it resolves and releases them on
    dispose(). It is not thread-safe; use one handler per session.

    Example:
        context = SessionContext(
            primary=get_backend("vector"),
            opset_imports={"ai.onnx": 13},
            fallback=get_backend("cpu"),
            fallback_enabled=True,
        )
        with SessionHandler(context) as session:
            kernel = session.resolve(GraphNode("Erf"))   # served by cpu
    """

    def __init__(self, context: SessionContext, name: Optional[str] = None):
        self._state = SessionState.UNINITIALIZED
        self.context = context
        self.name = name or f"session-{next(_session_ids)}"

        self._kernels: list[Kernel] = []
        self._records: list[ResolutionRecord] = []
        self._by_node: dict[str, Kernel] = {}
        self._inference_handlers: list[InferenceHandler] = []
        self._log = get_logger()

        self._state = SessionState.ACTIVE
        self._log.debug(
            "Session opened",
            component="session",
            session=self.name,
            primary=context.primary.name,
            fallback=context.fallback.name if context.fallback else None,
            fallback_enabled=context.fallback_enabled,
        )

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    def _require_active(self, operation: str) -> None:
        if self._state is not SessionState.ACTIVE:
            raise SessionStateError(operation, self._state.name)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def identity_for(self, node: GraphNode) -> OperatorIdentity:
        """
        Build the operator identity a node requests.

        Raises:
            UnsupportedOperatorError: If the node's domain has no opset
                import and the node carries no version of its own.
        """
        if node.domain is None:
            domain = self.context.default_domain
        else:
            domain = normalize_domain(node.domain)
        version = node.version if node.version is not None else self.context.version_for(domain)
        if version is None:
            raise UnsupportedOperatorError(
                node.op_type,
                domain=domain,
                backends=self.context.backend_names(),
                reason=f"no opset import for domain '{domain}'",
            )
        return OperatorIdentity(node.op_type, domain, version)

    def _lookup(self, identity: OperatorIdentity) -> tuple[CatalogEntry, Backend, bool]:
        primary = self.context.primary
        entry = primary.lookup(identity)
        if entry is not None:
            return entry, primary, False

        if self.context.uses_fallback:
            fallback = self.context.fallback
            entry = fallback.lookup(identity)
            if entry is not None:
                return entry, fallback, True

        raise UnsupportedOperatorError(
            identity.op_type,
            domain=identity.domain,
            version=identity.version,
            backends=self.context.backend_names(),
        )

    def resolve(self, node: GraphNode) -> Kernel:
        """
        Resolve a node to an initialized kernel.

        Args:
            node: Graph node to bind.

        Returns:
            Ready kernel owned by this session.

        Raises:
            UnsupportedOperatorError: No consulted backend serves the node.
            InvalidOperatorConfigurationError: The kernel rejected the
                node's attributes.
            SessionStateError: The session has been disposed.
        """
        self._require_active("resolve")

        identity = self.identity_for(node)
        try:
            entry, backend, used_fallback = self._lookup(identity)
        except UnsupportedOperatorError:
            self._log.error(
                f"No kernel for {identity}",
                component="session",
                session=self.name,
                operation="resolve",
                node=node.name,
            )
            raise

        kernel = entry.create()
        try:
            kernel.initialize(node.attributes)
        except InvalidOperatorConfigurationError as e:
            kernel.dispose()
            self._log.error(
                f"Kernel {entry.kernel_name} rejected attributes of {node.name}: {e.reason}",
                component="session",
                session=self.name,
                operation="initialize",
                backend=backend.name,
            )
            raise InvalidOperatorConfigurationError(
                e.op_type or node.op_type, e.reason, node_name=node.name
            ) from e
        except BaseException:
            kernel.dispose()
            raise

        self._kernels.append(kernel)
        self._by_node[node.name] = kernel
        self._records.append(
            ResolutionRecord(
                node_name=node.name,
                identity=identity,
                backend=backend.name,
                kernel_type=type(kernel).__name__,
                used_fallback=used_fallback,
            )
        )

        if used_fallback:
            self._log.info(
                f"{identity} served by fallback backend {backend.name}",
                component="session",
                session=self.name,
                operation="resolve",
                node=node.name,
            )
        else:
            self._log.debug(
                f"{identity} -> {type(kernel).__name__} ({backend.name})",
                component="session",
                session=self.name,
                operation="resolve",
            )
        return kernel

    def resolve_graph(self, graph: Graph) -> list[Kernel]:
        """Resolve every node of a graph, in node order."""
        self._require_active("resolve graph")

        start = time.perf_counter()
        kernels = [self.resolve(node) for node in graph]
        elapsed_ms = (time.perf_counter() - start) * 1000

        self._log.session_summary(
            {
                "session": self.name,
                "primary": self.context.primary.name,
                "fallback": self.context.fallback.name if self.context.uses_fallback else None,
                "resolved": len(kernels),
                "fallbacks": sum(1 for r in self._records if r.used_fallback),
                "resolve_ms": elapsed_ms,
            }
        )
        return kernels

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def bindings(self) -> list[ResolutionRecord]:
        """Resolution records in resolution order."""
        self._require_active("query bindings")
        return list(self._records)

    def kernel_for(self, node_name: str) -> Optional[Kernel]:
        """Kernel most recently resolved for a node name."""
        self._require_active("query kernels")
        return self._by_node.get(node_name)

    def owns(self, kernel: Kernel) -> bool:
        """Check if a kernel was resolved by this session."""
        return any(k is kernel for k in self._kernels)

    def create_inference_handler(self) -> InferenceHandler:
        """Create an execution context through the primary backend."""
        self._require_active("create inference handler")
        handler = self.context.primary.create_inference_handler(self)
        self._inference_handlers.append(handler)
        return handler

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Release every resolved kernel. Safe to call more than once."""
        if self._state is SessionState.DISPOSED:
            return

        first_error: Optional[BaseException] = None
        released = len(self._kernels)
        try:
            for resource in [*self._inference_handlers, *reversed(self._kernels)]:
                try:
                    resource.dispose()
                except Exception as e:
                    self._log.error(
                        f"Failed to release {resource!r}: {e}",
                        component="session",
                        session=self.name,
                        operation="dispose",
                    )
                    if first_error is None:
                        first_error = e
        finally:
            self._inference_handlers.clear()
            self._kernels.clear()
            self._by_node.clear()
            self._records.clear()
            self._state = SessionState.DISPOSED

        if first_error is not None:
            raise first_error

        self._log.debug(
            f"Session disposed, released {released} kernels",
            component="session",
            session=self.name,
            operation="dispose",
        )

    def __enter__(self) -> "SessionHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    def __len__(self) -> int:
        return len(self._kernels)

    def __repr__(self) -> str:
        return (
            f"<SessionHandler({self.name}, {self._state.name}, "
            f"primary={self.context.primary.name}, kernels={len(self._kernels)})>"
        )


def open_session(
    graph: Graph,
    context: SessionContext,
    name: Optional[str] = None,
) -> SessionHandler:
    """
    Create a session and resolve a whole graph.

    Any resolution error aborts session construction: the partially
    built session is disposed and the error propagates.
    """
    handler = SessionHandler(context, name=name)
    try:
        handler.resolve_graph(graph)
    except Exception:
        handler.dispose()
        raise
    return handler
