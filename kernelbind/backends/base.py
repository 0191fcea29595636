# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Backend Base Classes

A backend identifies a compute target and owns one operator catalog per
domain it serves. Backends are built once per process and are read-only
afterwards, so any number of sessions may query them concurrently.

Contract:
- name: Unique identifier string
- is_available(): True only if the backend can execute on this host
- supports(): Pure capability query
- catalog_for(): Catalog access used by session handlers
- create_inference_handler(): Per-session execution context factory
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

import numpy as np

from ..catalog import CatalogEntry, OperatorCatalog
from ..core.types import OperatorIdentity, normalize_domain
from ..errors import CatalogConflictError, ConfigurationError, SessionStateError, ValidationError
from ..kernels.base import Kernel

if TYPE_CHECKING:
    from ..session.handler import SessionHandler

logger = logging.getLogger("kernelbind.backends")


class InferenceHandler:
    """
    Per-session execution context.

    The surrounding engine uses it to run bound kernels against live
    tensors. It only checks that the kernel belongs to its session and
    then delegates to the kernel's invoke entry point.
    """

    def __init__(self, backend: "Backend", session: Optional["SessionHandler"] = None):
        self.backend = backend
        self.session = session
        self._disposed = False

    def run(self, kernel: Kernel, inputs: Sequence[Any]) -> list[np.ndarray]:
        """
        Invoke a kernel on live tensors.

        Args:
            kernel: Kernel resolved by this handler's session.
            inputs: Input tensors.

        Returns:
            Output arrays produced by the kernel.
        """
        if self._disposed:
            raise SessionStateError("run kernel", "DISPOSED")
        if self.session is not None and not self.session.owns(kernel):
            raise ValidationError(
                "kernel is not owned by this session",
                parameter="kernel",
                received=repr(kernel),
            )
        return kernel.invoke(self, inputs)

    def dispose(self) -> None:
        """Release the handler."""
        self._disposed = True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.backend.name})>"


class Backend:
    """
    Base class for compute backends.

    Subclasses either pass their catalogs to the constructor or override
    ``_build_catalogs``. Catalogs are indexed by domain once, at
    construction; two catalogs for the same domain are a CatalogConflictError.

    Example:
        builder = CatalogBuilder("ai.onnx")
        builder.add("Add", "7+", AddKernel)
        backend = Backend("mini", [builder.build(backend="mini")])

        backend.supports("Add", "ai.onnx", 13)   # True
    """

    name: str = ""

    def __init__(
        self,
        name: Optional[str] = None,
        catalogs: Optional[Iterable[OperatorCatalog]] = None,
    ):
        if name:
            self.name = name
        if not self.name:
            raise ConfigurationError("backend requires a name", config_key="name")

        if catalogs is None:
            catalogs = self._build_catalogs()

        by_domain: dict[str, OperatorCatalog] = {}
        for catalog in catalogs:
            if catalog.domain in by_domain:
                raise CatalogConflictError(
                    "*", catalog.domain, versions=None, backend=self.name
                )
            by_domain[catalog.domain] = catalog

        self._catalogs = MappingProxyType(by_domain)
        logger.debug(
            f"Backend {self.name} constructed with domains {sorted(by_domain)}"
        )

    def _build_catalogs(self) -> list[OperatorCatalog]:
        """Backend-specific catalog construction. Override in subclasses."""
        return []

    def is_available(self) -> bool:
        """Check if this backend can execute on the current system.

        Must NOT raise exceptions.
        """
        return True

    def domains(self) -> list[str]:
        """Domains this backend has catalogs for."""
        return sorted(self._catalogs.keys())

    def catalog_for(self, domain: Optional[str]) -> OperatorCatalog:
        """
        Get the catalog for a domain.

        Returns an empty catalog for unknown domains so callers never
        handle None.
        """
        domain = normalize_domain(domain)
        catalog = self._catalogs.get(domain)
        if catalog is None:
            return OperatorCatalog.empty(domain)
        return catalog

    def supports(self, op_type: str, domain: Optional[str], version: int) -> bool:
        """Check if the backend can produce a kernel for an operator version."""
        return self.catalog_for(domain).supports(op_type, version)

    def lookup(self, identity: OperatorIdentity) -> Optional[CatalogEntry]:
        """Find the catalog entry serving an operator identity."""
        return self.catalog_for(identity.domain).lookup_identity(identity)

    def create_inference_handler(
        self, session: Optional["SessionHandler"] = None
    ) -> InferenceHandler:
        """Create the per-session execution context."""
        return InferenceHandler(self, session)

    def op_count(self) -> int:
        """Total number of catalog entries across all domains."""
        return sum(len(catalog) for catalog in self._catalogs.values())

    def __repr__(self) -> str:
        status = "available" if self.is_available() else "unavailable"
        return f"<{self.__class__.__name__}({self.name}, {status})>"
