# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Session Options

Name-based session configuration that can be read from the environment
and turned into a SessionContext once backends are registered.

Environment variables:
    KERNELBIND_BACKEND           Primary backend name (default: vector)
    KERNELBIND_FALLBACK          Fallback backend name, empty or "none" disables
    KERNELBIND_FALLBACK_ENABLED  1/0, true/false, yes/no, on/off
    KERNELBIND_OPSET             Opset imports, e.g. "ai.onnx:13,com.microsoft:1"
"""

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional

from .core.types import normalize_domain
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .backends.registry import BackendRegistry
    from .session.context import SessionContext

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: str, key: str = "value") -> bool:
    """Parse a boolean flag from text."""
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(
        f"expected a boolean for {key}",
        config_key=key,
        config_value=value,
    )


def parse_opset_imports(text: str) -> dict[str, int]:
    """
    Parse opset imports from "domain:version" pairs.

    A bare version applies to the default domain, so "13" is the same as
    "ai.onnx:13".

    Example:
        >>> parse_opset_imports("ai.onnx:13,com.microsoft:1")
        {'ai.onnx': 13, 'com.microsoft': 1}
    """
    imports: dict[str, int] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        domain, sep, version = item.rpartition(":")
        if not sep:
            domain = ""
        try:
            number = int(version)
        except ValueError:
            number = -1
        if number < 0:
            raise ConfigurationError(
                f"invalid opset import '{item}'",
                config_key="opset_imports",
                config_value=text,
            )
        imports[normalize_domain(domain.strip())] = number
    return imports


@dataclass
class SessionOptions:
    """
    Session configuration by backend name.

    Attributes:
        backend: Primary backend name
        fallback: Fallback backend name (None disables)
        fallback_enabled: Whether the fallback may be consulted
        opset_imports: Opset version per domain
    """

    backend: str = "vector"
    fallback: Optional[str] = "cpu"
    fallback_enabled: bool = True
    opset_imports: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SessionOptions":
        """Read options from KERNELBIND_* environment variables."""
        env = os.environ if environ is None else environ
        options = cls()

        backend = env.get("KERNELBIND_BACKEND")
        if backend:
            options.backend = backend.strip().lower()

        if "KERNELBIND_FALLBACK" in env:
            fallback = env["KERNELBIND_FALLBACK"].strip().lower()
            options.fallback = None if fallback in ("", "none") else fallback

        enabled = env.get("KERNELBIND_FALLBACK_ENABLED")
        if enabled:
            options.fallback_enabled = parse_bool(enabled, "KERNELBIND_FALLBACK_ENABLED")

        opset = env.get("KERNELBIND_OPSET")
        if opset:
            options.opset_imports = parse_opset_imports(opset)

        return options

    def to_context(self, registry: Optional["BackendRegistry"] = None) -> "SessionContext":
        """
        Resolve backend names and build a SessionContext.

        Raises:
            ConfigurationError: Unknown backend, missing opset imports, or
                fallback equal to the primary backend.
        """
        from .backends.registry import BackendRegistry
        from .session.context import SessionContext

        registry = registry or BackendRegistry()
        primary = registry.require(self.backend)
        fallback = registry.require(self.fallback) if self.fallback else None

        return SessionContext(
            primary=primary,
            opset_imports=dict(self.opset_imports),
            fallback=fallback,
            fallback_enabled=self.fallback_enabled,
        )
