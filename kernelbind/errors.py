# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Error Hierarchy

Every error carries a short message, a numbered list of remedies and the
identity fields needed to reproduce the failed binding.

Error Categories:
- KernelbindError: Base class for all kernelbind errors
- UnsupportedOperatorError: No backend registers the requested operator
- InvalidOperatorConfigurationError: A kernel rejected its node attributes
- CatalogConflictError: Duplicate registration found while building a backend
- SessionStateError: Operation attempted in the wrong lifecycle state
- ConfigurationError: Invalid session configuration
- ValidationError: Attribute validation failure inside a kernel
"""

from typing import Any, Optional


def _context(**fields: Any) -> dict:
    """Keep only the fields that were actually provided."""
    return {key: value for key, value in fields.items() if value not in (None, "", [])}


class KernelbindError(Exception):
    """
    Base class for all kernelbind errors.

    Attributes:
        message: Human-readable error message
        suggestions: Ordered remedies, rendered as a numbered list
        context: Identity fields for debugging (operator, backend, ...)
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.suggestions = list(suggestions or [])
        self.context = dict(context or {})
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        sections = [self.message]
        if self.suggestions:
            numbered = (f"  {n}. {text}" for n, text in enumerate(self.suggestions, 1))
            sections.append("Suggestions:\n" + "\n".join(numbered))
        if self.context:
            fields = (f"  {key}: {value}" for key, value in self.context.items())
            sections.append("Context:\n" + "\n".join(fields))
        return "\n\n".join(sections)


class UnsupportedOperatorError(KernelbindError):
    """
    No backend can produce a kernel for the requested operator identity.

    Raised when the primary backend misses and the fallback backend either
    misses too, is disabled, or is not configured.
    """

    def __init__(
        self,
        op_type: str,
        domain: Optional[str] = None,
        version: Optional[int] = None,
        backends: Optional[list[str]] = None,
        reason: Optional[str] = None,
    ):
        self.op_type = op_type
        self.domain = domain
        self.version = version
        self.backends = list(backends or [])
        self.reason = reason

        super().__init__(
            f"Operator '{op_type}' is not supported",
            suggestions=[
                "Enable fallback to a backend with broader operator coverage",
                "Check that the session opset version matches the model",
                f"Register a kernel for '{op_type}' in one of the backend catalogs",
            ],
            context=_context(
                operator=op_type,
                domain=domain,
                version=version,
                backends=", ".join(self.backends),
                reason=reason,
            ),
        )


class InvalidOperatorConfigurationError(KernelbindError):
    """
    A kernel was instantiated but rejected the node's attributes.

    Raised when a required attribute is missing, has the wrong type, or
    contradicts another attribute.
    """

    def __init__(self, op_type: str, reason: str, node_name: Optional[str] = None):
        self.op_type = op_type
        self.reason = reason
        self.node_name = node_name

        super().__init__(
            f"Invalid configuration for operator '{op_type}': {reason}",
            suggestions=[
                "Check the node attributes against the operator definition",
                "Verify the opset version the model was exported with",
            ],
            context=_context(operator=op_type, node=node_name),
        )


class CatalogConflictError(KernelbindError):
    """
    Two registrations claim the same exact identity.

    Raised while building a catalog or constructing a backend, never at
    resolution time.
    """

    def __init__(
        self,
        op_type: str,
        domain: str,
        versions: Optional[str] = None,
        backend: Optional[str] = None,
    ):
        self.op_type = op_type
        self.domain = domain
        self.versions = versions
        self.backend = backend

        super().__init__(
            f"Conflicting registration for '{op_type}' in domain '{domain}'",
            suggestions=[
                "Remove the duplicate registration",
                "Use disjoint or differently sized version ranges",
            ],
            context=_context(operator=op_type, domain=domain, versions=versions, backend=backend),
        )


class SessionStateError(KernelbindError):
    """Operation not valid in the current session or kernel lifecycle state."""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(
            f"Cannot {operation} in state {state}",
            context={"operation": operation, "state": state},
        )


class ConfigurationError(KernelbindError):
    """
    Session or backend setup was rejected.

    Typical causes: the fallback is the primary backend, no opset is
    imported, or a backend name is not registered.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
    ):
        self.config_key = config_key
        self.config_value = config_value

        super().__init__(
            f"Configuration error: {message}",
            suggestions=[
                "Review the session options and KERNELBIND_* environment variables",
                "Verify the backend is registered before creating sessions",
            ],
            context=_context(
                config_key=config_key,
                config_value=None if config_value is None else str(config_value),
            ),
        )


class ValidationError(KernelbindError):
    """
    A kernel found an attribute or input it cannot accept.

    Kernels raise this from ``initialize``; the kernel lifecycle converts
    it into InvalidOperatorConfigurationError.
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ):
        self.parameter = parameter

        super().__init__(
            f"Validation failed: {message}",
            suggestions=[f"Check the value of '{parameter}'" if parameter else "Check the node attributes"],
            context=_context(parameter=parameter, expected=expected, received=received),
        )
