# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Activation and Unary Operators

Implements ONNX unary operators as CPU reference kernels:
- Abs, Neg, Exp, Log, Sqrt, Floor, Ceil, Relu, Sigmoid, Tanh
- Erf
- LeakyRelu, Elu, Clip
- Identity, Dropout (inference mode)
- Softmax (opset 1-12 and 13+ semantics)
"""

from __future__ import annotations

import math
from typing import Callable

import numpy as np

from ....core.attributes import Attributes
from ....errors import ValidationError
from ....kernels.base import Kernel

_erf = np.vectorize(math.erf, otypes=[np.float64])


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(x, 0)


def erf(x: np.ndarray) -> np.ndarray:
    """Gauss error function, preserving the input float dtype."""
    return _erf(x).astype(x.dtype if x.dtype.kind == "f" else np.float32)


class CpuUnaryOp(Kernel):
    """Element-wise unary operator without attributes."""

    def __init__(self, op_type: str, func: Callable[[np.ndarray], np.ndarray]):
        super().__init__()
        self.op_type = op_type
        self._func = func

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [self._func(inputs[0])]


class CpuErf(CpuUnaryOp):
    """Erf operator (opset 9+)."""

    def __init__(self):
        super().__init__("Erf", erf)


class CpuLeakyRelu(Kernel):
    """
    LeakyRelu operator.

    ONNX Spec: Y = X if X >= 0 else alpha * X
    """

    op_type = "LeakyRelu"

    def _configure(self, attributes: Attributes) -> None:
        self.alpha = attributes.get_float("alpha", 0.01)

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        return [np.where(x >= 0, x, x * self.alpha).astype(x.dtype)]


class CpuElu(Kernel):
    """
    Elu operator.

    ONNX Spec: Y = X if X >= 0 else alpha * (exp(X) - 1)
    """

    op_type = "Elu"

    def _configure(self, attributes: Attributes) -> None:
        self.alpha = attributes.get_float("alpha", 1.0)

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        return [np.where(x >= 0, x, self.alpha * (np.exp(x) - 1)).astype(x.dtype)]


class CpuClip(Kernel):
    """Clip operator, opset 6-10 (bounds are attributes)."""

    op_type = "Clip"

    def _configure(self, attributes: Attributes) -> None:
        self.min = attributes.get_float("min", -math.inf)
        self.max = attributes.get_float("max", math.inf)
        if self.min > self.max:
            raise ValidationError(
                f"min ({self.min}) is greater than max ({self.max})",
                parameter="min",
            )

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [np.clip(inputs[0], self.min, self.max)]


class CpuClipV11(Kernel):
    """Clip operator, opset 11+ (bounds are optional inputs)."""

    op_type = "Clip"
    max_inputs = 3

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        lo = inputs[1] if len(inputs) > 1 and inputs[1].size else None
        hi = inputs[2] if len(inputs) > 2 and inputs[2].size else None
        if lo is not None:
            x = np.maximum(x, lo)
        if hi is not None:
            x = np.minimum(x, hi)
        return [x]


class CpuIdentity(Kernel):
    """Identity operator - passes input through unchanged."""

    op_type = "Identity"

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [inputs[0]]


class CpuDropout(Kernel):
    """
    Dropout operator (inference mode - pass through).

    Produces the optional mask output as all-true.
    """

    op_type = "Dropout"
    max_inputs = 3

    def _configure(self, attributes: Attributes) -> None:
        ratio = attributes.get_float("ratio", 0.5)
        if not 0.0 <= ratio < 1.0:
            raise ValidationError(
                "ratio must be in [0, 1)",
                parameter="ratio",
                expected="[0, 1)",
                received=str(ratio),
            )
        self.ratio = ratio

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        return [x, np.ones_like(x, dtype=np.bool_)]


class CpuSoftmax(Kernel):
    """
    Softmax operator.

    Opset 1-12: the input is coerced to 2D at ``axis`` (default 1) and
    normalized over the flattened trailing dimensions.
    Opset 13+: normalized along the single ``axis`` (default -1).
    """

    op_type = "Softmax"

    def __init__(self, legacy: bool = False):
        super().__init__()
        self.legacy = legacy

    def _configure(self, attributes: Attributes) -> None:
        self.axis = attributes.get_int("axis", 1 if self.legacy else -1)

    def _normalized_axis(self, rank: int) -> int:
        axis = self.axis
        if axis < -rank or axis >= rank:
            raise ValidationError(
                f"axis {axis} out of range for rank {rank}",
                parameter="axis",
            )
        return axis + rank if axis < 0 else axis

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        axis = self._normalized_axis(x.ndim)

        if self.legacy:
            rows = int(np.prod(x.shape[:axis], dtype=np.int64))
            flat = x.reshape(rows, -1)
            return [_softmax(flat, 1).reshape(x.shape)]

        return [_softmax(x, axis)]


def _softmax(x: np.ndarray, axis: int) -> np.ndarray:
    shifted = x - np.max(x, axis=axis, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=axis, keepdims=True)
