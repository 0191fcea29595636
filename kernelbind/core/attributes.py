# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Node Attributes

Read-only, typed view over a node's attribute mapping. Kernels use it
during initialization to validate and extract their static parameters.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Iterator, Optional

import numpy as np

from ..errors import ValidationError

_MISSING = object()


class Attributes(Mapping):
    """
    Typed accessor for node attributes.

    Every getter takes an optional default. When the attribute is absent
    and no default is given, a ValidationError is raised. Values of the
    wrong type always raise ValidationError.

    Example:
        attrs = Attributes({"axis": 1, "epsilon": 1e-5})
        axis = attrs.get_int("axis", 1)
        eps = attrs.get_float("epsilon", 1e-5)
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = MappingProxyType(dict(values or {}))

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Attributes({dict(self._values)})"

    def _fetch(self, name: str, default: Any, expected: str) -> Any:
        if name in self._values:
            return self._values[name]
        if default is _MISSING:
            raise ValidationError(
                f"missing required attribute '{name}'",
                parameter=name,
                expected=expected,
            )
        return default

    def get_int(self, name: str, default: Any = _MISSING) -> int:
        """Get an integer attribute."""
        value = self._fetch(name, default, "int")
        if value is default:
            return value
        if isinstance(value, (bool, np.bool_)) or not isinstance(
            value, (int, np.integer)
        ):
            raise _type_error(name, "int", value)
        return int(value)

    def get_float(self, name: str, default: Any = _MISSING) -> float:
        """Get a float attribute. Integers are accepted and widened."""
        value = self._fetch(name, default, "float")
        if value is default:
            return value
        if isinstance(value, (bool, np.bool_)) or not isinstance(
            value, (int, float, np.integer, np.floating)
        ):
            raise _type_error(name, "float", value)
        return float(value)

    def get_string(self, name: str, default: Any = _MISSING) -> str:
        """Get a string attribute."""
        value = self._fetch(name, default, "str")
        if value is default:
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8")
        if not isinstance(value, str):
            raise _type_error(name, "str", value)
        return value

    def get_ints(self, name: str, default: Any = _MISSING) -> list[int]:
        """Get a list-of-int attribute."""
        value = self._fetch(name, default, "list[int]")
        if value is default:
            return value
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, (int, np.integer)) and not isinstance(v, bool)
            for v in value
        ):
            raise _type_error(name, "list[int]", value)
        return [int(v) for v in value]

    def get_floats(self, name: str, default: Any = _MISSING) -> list[float]:
        """Get a list-of-float attribute."""
        value = self._fetch(name, default, "list[float]")
        if value is default:
            return value
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, (int, float, np.integer, np.floating))
            and not isinstance(v, bool)
            for v in value
        ):
            raise _type_error(name, "list[float]", value)
        return [float(v) for v in value]

    def get_strings(self, name: str, default: Any = _MISSING) -> list[str]:
        """Get a list-of-string attribute."""
        value = self._fetch(name, default, "list[str]")
        if value is default:
            return value
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, str) for v in value
        ):
            raise _type_error(name, "list[str]", value)
        return list(value)

    def get_tensor(self, name: str, default: Any = _MISSING) -> np.ndarray:
        """Get a tensor attribute as a numpy array."""
        value = self._fetch(name, default, "tensor")
        if value is default:
            return value
        if not isinstance(value, np.ndarray):
            raise _type_error(name, "tensor", value)
        return value


def _type_error(name: str, expected: str, value: Any) -> ValidationError:
    return ValidationError(
        f"attribute '{name}' has wrong type",
        parameter=name,
        expected=expected,
        received=type(value).__name__,
    )
