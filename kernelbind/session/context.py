# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Session Context

Per-session dispatch configuration: which backend is tried first, which
one (if any) serves capability misses, and which opset version applies
to each operator domain.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

from ..core.types import DEFAULT_DOMAIN, normalize_domain
from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..backends.base import Backend
    from ..core.graph import Graph


@dataclass(frozen=True)
class SessionContext:
    """
    Immutable session configuration.

    Attributes:
        primary: Backend consulted first for every node.
        opset_imports: Opset version per domain. Required, at least the
            default domain must be imported.
        fallback: Backend consulted on a primary miss. Must not be the
            primary backend.
        fallback_enabled: Whether the fallback backend may be consulted.
        default_domain: Domain assumed for nodes that carry none.

    Example:
        context = SessionContext(
            primary=get_backend("vector"),
            opset_imports={"ai.onnx": 13},
            fallback=get_backend("cpu"),
            fallback_enabled=True,
        )
    """

    primary: "Backend"
    opset_imports: Mapping[str, int] = field(default_factory=dict)
    fallback: Optional["Backend"] = None
    fallback_enabled: bool = False
    default_domain: str = DEFAULT_DOMAIN

    def __post_init__(self):
        if self.primary is None:
            raise ConfigurationError("a primary backend is required", config_key="primary")

        if self.fallback is not None and self.fallback is self.primary:
            raise ConfigurationError(
                "fallback backend must differ from the primary backend",
                config_key="fallback",
                config_value=self.fallback.name,
            )

        if not self.opset_imports:
            raise ConfigurationError(
                "at least one opset import is required",
                config_key="opset_imports",
            )

        imports = {}
        for domain, version in self.opset_imports.items():
            if isinstance(version, bool) or not isinstance(version, int) or version < 0:
                raise ConfigurationError(
                    f"opset version for '{normalize_domain(domain)}' must be a non-negative integer",
                    config_key="opset_imports",
                    config_value=repr(version),
                )
            imports[normalize_domain(domain)] = version

        default_domain = normalize_domain(self.default_domain)
        if default_domain not in imports:
            raise ConfigurationError(
                f"default domain '{default_domain}' has no opset import",
                config_key="opset_imports",
                config_value=", ".join(sorted(imports)),
            )

        object.__setattr__(self, "opset_imports", MappingProxyType(imports))
        object.__setattr__(self, "default_domain", default_domain)

    @classmethod
    def for_graph(
        cls,
        graph: "Graph",
        primary: "Backend",
        fallback: Optional["Backend"] = None,
        fallback_enabled: bool = False,
    ) -> "SessionContext":
        """Build a context from the opset imports a graph was exported with."""
        return cls(
            primary=primary,
            opset_imports=dict(graph.opset_imports),
            fallback=fallback,
            fallback_enabled=fallback_enabled,
        )

    @property
    def uses_fallback(self) -> bool:
        """True when a fallback backend is configured and enabled."""
        return self.fallback_enabled and self.fallback is not None

    def version_for(self, domain: Optional[str]) -> Optional[int]:
        """Opset version imported for a domain (None if not imported)."""
        return self.opset_imports.get(normalize_domain(domain))

    def backend_names(self) -> list[str]:
        """Names of the backends this context may consult, in order."""
        names = [self.primary.name]
        if self.uses_fallback:
            names.append(self.fallback.name)
        return names
