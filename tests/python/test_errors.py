# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tests for Kernelbind Error Handling

Validates:
- Error hierarchy
- Error message formatting
- Suggestions in error messages
- Context information
"""

import pytest

from kernelbind.errors import (
    CatalogConflictError,
    ConfigurationError,
    InvalidOperatorConfigurationError,
    KernelbindError,
    SessionStateError,
    UnsupportedOperatorError,
    ValidationError,
)


class TestKernelbindError:
    """Tests for KernelbindError base class."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = KernelbindError("Test error")
        assert "Test error" in str(error)

    def test_error_with_suggestions(self):
        """Test error with suggestions."""
        error = KernelbindError(
            "Test error",
            suggestions=["Fix A", "Fix B"],
        )
        msg = str(error)
        assert "Suggestions:" in msg
        assert "1. Fix A" in msg
        assert "2. Fix B" in msg

    def test_error_with_context(self):
        """Test error with context."""
        error = KernelbindError(
            "Test error",
            context={"key1": "value1", "key2": "value2"},
        )
        msg = str(error)
        assert "Context:" in msg
        assert "key1: value1" in msg
        assert "key2: value2" in msg

    def test_error_attributes(self):
        """Test error attributes."""
        error = KernelbindError(
            "Test error",
            suggestions=["Fix A"],
            context={"key": "value"},
        )
        assert error.message == "Test error"
        assert error.suggestions == ["Fix A"]
        assert error.context == {"key": "value"}


class TestUnsupportedOperatorError:
    """Tests for UnsupportedOperatorError."""

    def test_names_operator(self):
        error = UnsupportedOperatorError("Erf")
        assert error.op_type == "Erf"
        assert "Operator 'Erf' is not supported" in str(error)

    def test_identity_in_context(self):
        error = UnsupportedOperatorError(
            "Erf", domain="ai.onnx", version=13, backends=["vector", "cpu"]
        )
        assert error.domain == "ai.onnx"
        assert error.version == 13
        assert error.context["backends"] == "vector, cpu"
        assert "version: 13" in str(error)

    def test_reason(self):
        error = UnsupportedOperatorError("Foo", reason="no opset import")
        assert error.reason == "no opset import"
        assert "reason: no opset import" in str(error)


class TestInvalidOperatorConfigurationError:
    """Tests for InvalidOperatorConfigurationError."""

    def test_carries_reason(self):
        error = InvalidOperatorConfigurationError("Clip", "min greater than max")
        assert error.op_type == "Clip"
        assert error.reason == "min greater than max"
        assert "Invalid configuration for operator 'Clip'" in str(error)

    def test_node_name(self):
        error = InvalidOperatorConfigurationError("Concat", "missing axis", node_name="concat_1")
        assert error.context["node"] == "concat_1"

    def test_distinct_from_unsupported(self):
        error = InvalidOperatorConfigurationError("Clip", "bad")
        assert not isinstance(error, UnsupportedOperatorError)


class TestOtherErrors:
    """Tests for the remaining error types."""

    def test_catalog_conflict(self):
        error = CatalogConflictError("Add", "ai.onnx", versions="7+", backend="cpu")
        msg = str(error)
        assert "Conflicting registration for 'Add'" in msg
        assert "versions: 7+" in msg
        assert "backend: cpu" in msg

    def test_session_state(self):
        error = SessionStateError("resolve", "DISPOSED")
        assert "Cannot resolve in state DISPOSED" in str(error)
        assert error.state == "DISPOSED"

    def test_configuration_error(self):
        error = ConfigurationError("bad backend", config_key="backend", config_value="gpu")
        msg = str(error)
        assert "Configuration error:" in msg
        assert "config_key: backend" in msg
        assert "config_value: gpu" in msg

    def test_validation_error(self):
        error = ValidationError(
            "wrong type", parameter="axis", expected="int", received="str"
        )
        assert error.parameter == "axis"
        assert "Validation failed:" in str(error)
        assert "expected: int" in str(error)


class TestErrorHierarchy:
    """Tests for error inheritance."""

    @pytest.mark.parametrize(
        "error",
        [
            UnsupportedOperatorError("X"),
            InvalidOperatorConfigurationError("X", "r"),
            CatalogConflictError("X", "ai.onnx"),
            SessionStateError("op", "S"),
            ConfigurationError("m"),
            ValidationError("m"),
        ],
    )
    def test_all_inherit_from_base(self, error):
        assert isinstance(error, KernelbindError)
        assert isinstance(error, Exception)

    def test_catch_all_errors(self):
        with pytest.raises(KernelbindError):
            raise UnsupportedOperatorError("Erf")
