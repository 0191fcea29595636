# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Operator Catalog

Maps operator identities (op_type + domain + opset version range) to the
factories that construct backend kernels.

A catalog is assembled through a CatalogBuilder during backend
construction and is immutable afterwards, so lookups need no locking and
catalogs can be shared by every session in the process.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Optional, Union

from ..core.types import DEFAULT_DOMAIN, OperatorIdentity, VersionRange, normalize_domain
from ..errors import CatalogConflictError
from ..kernels.base import Kernel, KernelFactory

logger = logging.getLogger("kernelbind.catalog")

VersionSelector = Union[str, int, VersionRange]


@dataclass(frozen=True)
class CatalogEntry:
    """
    One registered kernel factory.

    Attributes:
        op_type: Operator type (e.g., "Conv", "Add").
        domain: Operator domain.
        versions: Opset versions this factory serves.
        factory: Zero-argument callable returning a fresh Kernel.
        registration_index: Position in registration order.
    """

    op_type: str
    domain: str
    versions: VersionRange
    factory: KernelFactory
    registration_index: int

    def matches(self, op_type: str, version: int) -> bool:
        """Check if this entry serves the requested operator version."""
        return self.op_type == op_type and self.versions.contains(version)

    def create(self) -> Kernel:
        """Instantiate a new kernel."""
        kernel = self.factory()
        if not isinstance(kernel, Kernel):
            raise TypeError(
                f"Factory for '{self.op_type}' returned {type(kernel).__name__}, "
                "expected a Kernel"
            )
        return kernel

    @property
    def kernel_name(self) -> str:
        """Readable name of the kernel type produced by the factory."""
        factory = self.factory
        while isinstance(factory, functools.partial):
            factory = factory.func
        return getattr(factory, "__name__", repr(factory))

    def _precedence(self) -> tuple:
        # narrowest range first, then most recently registered
        return (self.versions.width, -self.registration_index)


class OperatorCatalog:
    """
    Immutable registry of kernel factories for one operator domain.

    Lookup returns the most specific entry whose version range contains
    the requested version: the narrowest range wins, and among equally
    wide ranges the most recently registered entry wins.

    Example:
        builder = CatalogBuilder("ai.onnx")
        builder.add("Add", "7+", AddKernel)
        catalog = builder.build()

        entry = catalog.lookup("Add", 13)
        kernel = entry.create()
    """

    def __init__(
        self,
        domain: str,
        entries: Iterable[CatalogEntry] = (),
        backend: Optional[str] = None,
    ):
        self._domain = normalize_domain(domain)

        by_op: dict[str, list[CatalogEntry]] = {}
        for entry in entries:
            self._check(entry, by_op.get(entry.op_type, ()), backend)
            by_op.setdefault(entry.op_type, []).append(entry)

        self._entries = MappingProxyType(
            {
                op_type: tuple(sorted(op_entries, key=CatalogEntry._precedence))
                for op_type, op_entries in by_op.items()
            }
        )

    def _check(
        self,
        entry: CatalogEntry,
        registered: Iterable[CatalogEntry],
        backend: Optional[str],
    ) -> None:
        if normalize_domain(entry.domain) != self._domain:
            logger.error(
                f"Entry {entry.op_type}@{entry.versions} belongs to {entry.domain}, "
                f"not {self._domain}"
            )
            raise CatalogConflictError(
                entry.op_type, entry.domain, versions=str(entry.versions), backend=backend
            )
        if any(other.versions == entry.versions for other in registered):
            logger.error(
                f"Duplicate registration {entry.op_type}@{entry.versions} in {self._domain}"
            )
            raise CatalogConflictError(
                entry.op_type, self._domain, versions=str(entry.versions), backend=backend
            )

    @classmethod
    def empty(cls, domain: str = DEFAULT_DOMAIN) -> "OperatorCatalog":
        """Catalog with no registrations."""
        return cls(domain)

    @property
    def domain(self) -> str:
        """Operator domain served by this catalog."""
        return self._domain

    def lookup(self, op_type: str, version: int) -> Optional[CatalogEntry]:
        """
        Find the kernel factory for an operator version.

        Args:
            op_type: Operator type.
            version: Requested opset version.

        Returns:
            Most specific matching CatalogEntry, or None on a miss.
        """
        for entry in self._entries.get(op_type, ()):
            if entry.versions.contains(version):
                return entry
        return None

    def lookup_identity(self, identity: OperatorIdentity) -> Optional[CatalogEntry]:
        """Find the kernel factory for a full operator identity."""
        if identity.domain != self._domain:
            return None
        return self.lookup(identity.op_type, identity.version)

    def supports(self, op_type: str, version: int) -> bool:
        """Check if an operator version is registered."""
        return self.lookup(op_type, version) is not None

    def op_types(self) -> list[str]:
        """List all registered operator types."""
        return sorted(self._entries.keys())

    def entries(self) -> list[CatalogEntry]:
        """All entries in registration order."""
        flat = [entry for op_entries in self._entries.values() for entry in op_entries]
        return sorted(flat, key=lambda e: e.registration_index)

    def __contains__(self, op_type: object) -> bool:
        return op_type in self._entries

    def __len__(self) -> int:
        return sum(len(op_entries) for op_entries in self._entries.values())

    def __repr__(self) -> str:
        return f"OperatorCatalog(domain='{self._domain}', entries={len(self)})"


class CatalogBuilder:
    """
    Mutable registration surface that produces an OperatorCatalog.

    Conflicts (two factories for the same op_type and the exact same
    version range) are reported by build() as CatalogConflictError.

    Example:
        builder = CatalogBuilder()

        @builder.register("Relu", "6+")
        class CpuRelu(Kernel):
            ...

        builder.add("Add", "7+", functools.partial(CpuBinaryOp, "Add", np.add))
        catalog = builder.build()
    """

    def __init__(self, domain: str = DEFAULT_DOMAIN):
        self._domain = normalize_domain(domain)
        self._entries: list[CatalogEntry] = []
        self._built = False

    @property
    def domain(self) -> str:
        return self._domain

    def add(
        self,
        op_type: str,
        versions: VersionSelector,
        factory: KernelFactory,
    ) -> "CatalogBuilder":
        """
        Register a kernel factory.

        Args:
            op_type: Operator type (e.g., "MatMul").
            versions: Version selector ("7", "7-10", "7+") or VersionRange.
            factory: Zero-argument callable returning a Kernel.

        Returns:
            The builder, for chaining.
        """
        if self._built:
            raise RuntimeError("CatalogBuilder already built; catalogs are immutable")
        if not callable(factory):
            raise TypeError(f"Factory for '{op_type}' is not callable")

        self._entries.append(
            CatalogEntry(
                op_type=op_type,
                domain=self._domain,
                versions=VersionRange.parse(versions),
                factory=factory,
                registration_index=len(self._entries),
            )
        )
        return self

    def register(
        self,
        op_type: str,
        versions: VersionSelector,
    ) -> Callable[[KernelFactory], KernelFactory]:
        """Decorator form of add()."""

        def decorator(factory: KernelFactory) -> KernelFactory:
            self.add(op_type, versions, factory)
            return factory

        return decorator

    def extend(
        self,
        rules: Iterable[tuple[str, VersionSelector, KernelFactory]],
    ) -> "CatalogBuilder":
        """Register a table of (op_type, versions, factory) rules."""
        for op_type, versions, factory in rules:
            self.add(op_type, versions, factory)
        return self

    def build(self, backend: Optional[str] = None) -> OperatorCatalog:
        """
        Validate registrations and freeze them into a catalog.

        Args:
            backend: Owning backend name, used in error context.

        Raises:
            CatalogConflictError: If two entries share op_type and exact range.
        """
        catalog = OperatorCatalog(self._domain, self._entries, backend=backend)
        self._built = True
        logger.debug(f"Built catalog {catalog!r}")
        return catalog
