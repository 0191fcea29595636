# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Normalization Operators

Implements as CPU reference kernels:
- BatchNormalization: Inference-mode batch normalization
- InstanceNormalization: Per-instance, per-channel normalization
- Gelu: com.microsoft contrib operator
"""

from __future__ import annotations

import numpy as np

from ....core.attributes import Attributes
from ....errors import ValidationError
from ....kernels.base import Kernel
from .activation_ops import erf


def _channel_shape(x: np.ndarray) -> tuple[int, ...]:
    """Broadcast shape [1, C, 1, ...] for per-channel parameters."""
    return (1, -1) + (1,) * (x.ndim - 2)


class CpuBatchNormalization(Kernel):
    """
    Batch Normalization operator (inference mode).

    ONNX Spec: Y = (X - input_mean) / sqrt(input_var + epsilon) * scale + B
    """

    op_type = "BatchNormalization"
    min_inputs = 5
    max_inputs = 5

    def _configure(self, attributes: Attributes) -> None:
        self.epsilon = attributes.get_float("epsilon", 1e-5)
        self.momentum = attributes.get_float("momentum", 0.9)
        # opset 7-8 only; per-activation normalization is not implemented
        if attributes.get_int("spatial", 1) != 1:
            raise ValidationError(
                "non-spatial batch normalization is not supported",
                parameter="spatial",
                expected="1",
            )
        if self.epsilon < 0:
            raise ValidationError("epsilon must be non-negative", parameter="epsilon")

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x, scale, bias, mean, var = inputs
        shape = _channel_shape(x)
        normalized = (x - mean.reshape(shape)) / np.sqrt(var.reshape(shape) + self.epsilon)
        y = scale.reshape(shape) * normalized + bias.reshape(shape)
        return [y.astype(x.dtype, copy=False)]


class CpuInstanceNormalization(Kernel):
    """
    Instance Normalization operator.

    ONNX Spec: Y = (X - Mean) / sqrt(Var + epsilon) * Scale + Bias
    Normalization is done per instance (per batch, per channel).
    """

    op_type = "InstanceNormalization"
    min_inputs = 3
    max_inputs = 3

    def _configure(self, attributes: Attributes) -> None:
        self.epsilon = attributes.get_float("epsilon", 1e-5)

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x, scale, bias = inputs
        if x.ndim < 3:
            raise ValidationError(
                f"expected at least 3D input, got {x.ndim}D", parameter="input"
            )
        axes = tuple(range(2, x.ndim))
        mean = np.mean(x, axis=axes, keepdims=True)
        var = np.var(x, axis=axes, keepdims=True)
        shape = _channel_shape(x)
        y = (x - mean) / np.sqrt(var + self.epsilon) * scale.reshape(shape) + bias.reshape(shape)
        return [y.astype(x.dtype, copy=False)]


class CpuGelu(Kernel):
    """
    Gelu operator (com.microsoft domain).

    Y = 0.5 * X * (1 + erf(X / sqrt(2)))
    """

    op_type = "Gelu"

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        return [(0.5 * x * (1.0 + erf(x / np.sqrt(2.0)))).astype(x.dtype, copy=False)]
