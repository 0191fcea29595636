# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Backend Registry

Process-wide registration of backends. Backends are constructed once
(lazily for the built-in ones) and shared read-only by every session.

Features:
- Instance and class registration
- Lookup by name ("cpu", "vector")
- Hint-based resolution with a default priority order
- Thread-safe singleton registry
"""

import logging
import threading
from typing import Dict, List, Optional, Sequence, Type

from ..errors import ConfigurationError
from .base import Backend

logger = logging.getLogger("kernelbind.backends.registry")


class BackendRegistry:
    """
    Singleton registry for backends.

    Thread Safety: Registration and lazy construction are protected by a
    lock. Backends handed out are immutable and need no further locking.
    """

    _instance: Optional["BackendRegistry"] = None
    _lock = threading.RLock()

    def __new__(cls) -> "BackendRegistry":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._backends: Dict[str, Backend] = {}
        self._backend_classes: Dict[str, Type[Backend]] = {}
        self._priority: List[str] = ["vector", "cpu"]
        self._initialized = True

        # Auto-register built-in backends
        self._register_builtin_backends()

    def _register_builtin_backends(self) -> None:
        """Register built-in backend classes."""
        from .cpu import CPUBackend
        from .vector import VectorBackend

        self._backend_classes["cpu"] = CPUBackend
        self._backend_classes["vector"] = VectorBackend

    def register_backend(self, backend: Backend, replace: bool = False) -> None:
        """
        Register a backend instance.

        Args:
            backend: Backend instance to register.
            replace: Allow replacing an existing backend of the same name.
        """
        with self._lock:
            if backend.name in self._backends and not replace:
                raise ConfigurationError(
                    f"backend '{backend.name}' is already registered",
                    config_key="backend",
                    config_value=backend.name,
                )
            self._backends[backend.name] = backend
            logger.debug(f"Registered backend: {backend.name}")

    def register_backend_class(
        self,
        name: str,
        backend_class: Type[Backend],
    ) -> None:
        """
        Register a backend class for lazy instantiation.

        Args:
            name: Backend name (e.g., "cpu").
            backend_class: Backend class to register.
        """
        with self._lock:
            self._backend_classes[name] = backend_class
            logger.debug(f"Registered backend class: {name}")

    def get(self, name: str) -> Optional[Backend]:
        """
        Get a backend by name, constructing built-ins on first use.

        Args:
            name: Backend name.

        Returns:
            Backend instance or None if the name is unknown.
        """
        name = name.strip().lower()

        with self._lock:
            if name in self._backends:
                return self._backends[name]

            if name in self._backend_classes:
                backend = self._backend_classes[name]()
                self._backends[name] = backend
                logger.info(f"Constructed backend {backend!r}")
                return backend

        return None

    def require(self, name: str) -> Backend:
        """Get a backend by name, raising ConfigurationError if unknown."""
        backend = self.get(name)
        if backend is None:
            raise ConfigurationError(
                f"unknown backend '{name}' (registered: {', '.join(self.list_backends())})",
                config_key="backend",
                config_value=name,
            )
        return backend

    def resolve(self, hints: Optional[Sequence[str]] = None) -> Backend:
        """
        Pick a backend from an ordered list of hints.

        The first known and available backend wins. Without hints the
        default priority order is used.

        Raises:
            ConfigurationError: If no hinted backend is usable.
        """
        candidates = list(hints) if hints else list(self._priority)
        for name in candidates:
            backend = self.get(name)
            if backend is not None and backend.is_available():
                return backend
            logger.debug(f"Backend hint '{name}' not usable")

        raise ConfigurationError(
            f"no usable backend among {candidates}",
            config_key="backend",
            config_value=",".join(candidates),
        )

    def set_priority(self, order: List[str]) -> None:
        """
        Set the default resolution order.

        Args:
            order: Backend names in order of preference.
        """
        self._priority = list(order)

    def list_backends(self) -> List[str]:
        """Get sorted list of registered backend names."""
        with self._lock:
            return sorted(set(self._backend_classes) | set(self._backends))

    def list_available(self) -> List[str]:
        """Get list of available backends."""
        available = []
        for name in self.list_backends():
            backend = self.get(name)
            if backend is not None and backend.is_available():
                available.append(name)
        return available

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        with cls._lock:
            cls._instance = None


# Module-level convenience functions


def get_backend(name: str) -> Backend:
    """Get a registered backend by name."""
    return BackendRegistry().require(name)


def register_backend(backend: Backend, replace: bool = False) -> None:
    """Register a backend instance with the global registry."""
    BackendRegistry().register_backend(backend, replace=replace)


def resolve_backend(hints: Optional[Sequence[str]] = None) -> Backend:
    """Pick the first usable backend from the hints."""
    return BackendRegistry().resolve(hints)


def list_backends() -> List[str]:
    """List all registered backend names."""
    return BackendRegistry().list_backends()
