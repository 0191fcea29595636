# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernel Base Class

Defines the capability interface every backend kernel exposes to the
session layer:

- initialize(attributes): validate and freeze static node attributes
- invoke(handler, inputs): run the computation on live tensors

Lifecycle: CONSTRUCTED -> INITIALIZED -> DISPOSED.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence, Union

import numpy as np

from ..core.attributes import Attributes
from ..errors import (
    InvalidOperatorConfigurationError,
    SessionStateError,
    ValidationError,
)

if TYPE_CHECKING:
    from ..backends.base import InferenceHandler


class KernelState(Enum):
    """Kernel lifecycle states."""

    CONSTRUCTED = auto()
    INITIALIZED = auto()
    DISPOSED = auto()


class Kernel(ABC):
    """
    Abstract base class for backend kernels.

    Subclasses set ``op_type``, override ``_configure`` to read their
    attributes, and implement ``_compute``. A kernel is bound to exactly
    one graph node and is not safe to share between threads.

    Example:
        class ReluKernel(Kernel):
            op_type = "Relu"

            def _compute(self, inputs):
                return [np.maximum(inputs[0], 0)]
    """

    op_type: str = ""
    min_inputs: int = 1
    max_inputs: Optional[int] = 1

    def __init__(self):
        self._state = KernelState.CONSTRUCTED
        self._attributes: Optional[Attributes] = None

    @property
    def state(self) -> KernelState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        """Check if the kernel can be invoked."""
        return self._state is KernelState.INITIALIZED

    @property
    def attributes(self) -> Optional[Attributes]:
        """Attributes frozen at initialization (None before)."""
        return self._attributes

    def initialize(self, attributes: Union[Attributes, Mapping[str, Any], None]) -> None:
        """
        Validate and freeze the node's static attributes.

        Args:
            attributes: Node attribute mapping.

        Raises:
            InvalidOperatorConfigurationError: If attributes are malformed,
                missing, or unsupported by this kernel.
            SessionStateError: If the kernel was already initialized or disposed.
        """
        if self._state is not KernelState.CONSTRUCTED:
            raise SessionStateError("initialize kernel", self._state.name)

        if not isinstance(attributes, Attributes):
            attributes = Attributes(attributes)

        try:
            self._configure(attributes)
        except InvalidOperatorConfigurationError:
            raise
        except ValidationError as e:
            raise InvalidOperatorConfigurationError(self.op_type, e.message) from e
        except Exception as e:
            raise InvalidOperatorConfigurationError(
                self.op_type, f"{type(e).__name__}: {e}"
            ) from e

        self._attributes = attributes
        self._state = KernelState.INITIALIZED

    def _configure(self, attributes: Attributes) -> None:
        """Read attributes into kernel state. Override in subclasses."""
        pass

    def invoke(
        self,
        handler: Optional["InferenceHandler"],
        inputs: Sequence[Any],
    ) -> list[np.ndarray]:
        """
        Run the kernel on live tensors.

        Args:
            handler: Inference handler of the owning session.
            inputs: Input tensors (anything numpy can convert).

        Returns:
            List of output arrays.
        """
        if not self.is_ready:
            raise SessionStateError("invoke kernel", self._state.name)

        if len(inputs) < self.min_inputs or (
            self.max_inputs is not None and len(inputs) > self.max_inputs
        ):
            expected = (
                f">= {self.min_inputs}"
                if self.max_inputs is None
                else f"{self.min_inputs}..{self.max_inputs}"
            )
            raise ValidationError(
                f"{self.op_type} got {len(inputs)} inputs",
                parameter="inputs",
                expected=expected,
                received=str(len(inputs)),
            )

        return self._compute([np.asarray(x) for x in inputs])

    @abstractmethod
    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        """Kernel body."""
        pass

    def dispose(self) -> None:
        """Release kernel resources. Safe to call more than once."""
        if self._state is KernelState.DISPOSED:
            return
        try:
            self._release()
        finally:
            self._state = KernelState.DISPOSED

    def _release(self) -> None:
        """Backend-specific cleanup. Override in subclasses."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.op_type}, {self._state.name})>"


# Factory contract stored in operator catalogs
KernelFactory = Callable[[], Kernel]
