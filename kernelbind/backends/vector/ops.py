# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Vectorized Operators

float32 kernels for the vector backend. Each kernel reuses the attribute
handling of its CPU reference counterpart and replaces the compute path:

- Conv: im2col over strided sliding windows + einsum
- MaxPool / AveragePool: sliding-window reductions
- BatchNormalization: folded scale/shift
- Everything else: float32 guard + contiguous inputs
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ...errors import ValidationError
from ..cpu.ops.activation_ops import CpuSoftmax
from ..cpu.ops.conv_ops import (
    CpuAveragePool,
    CpuConv,
    CpuGlobalAveragePool,
    CpuGlobalMaxPool,
    CpuMaxPool,
    ensure_nchw,
    output_extent,
)
from ..cpu.ops.math_ops import CpuBinaryOp, CpuGemm, CpuMatMul, CpuSum
from ..cpu.ops.norm_ops import CpuBatchNormalization, CpuInstanceNormalization

FLOAT32 = ("float32",)


def as_float32(op_type: str, inputs: list[np.ndarray]) -> list[np.ndarray]:
    """Reject non-float32 inputs and make them contiguous."""
    for x in inputs:
        if x.dtype != np.float32:
            raise ValidationError(
                f"{op_type} accepts float32 inputs only",
                parameter="inputs",
                expected="float32",
                received=x.dtype.name,
            )
    return [np.ascontiguousarray(x) for x in inputs]


class _Float32Mixin:
    """Route compute through the float32 guard."""

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return super()._compute(as_float32(self.op_type, inputs))


class VectorBinaryOp(CpuBinaryOp):
    """Binary element-wise op restricted to one dtype family."""

    def __init__(self, op_type, func, types=FLOAT32):
        super().__init__(op_type, func, types)

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        self._check_types(inputs)
        a, b = (np.ascontiguousarray(x) for x in inputs)
        try:
            np.broadcast_shapes(a.shape, b.shape)
        except ValueError as e:
            raise ValidationError(
                f"shapes {a.shape} and {b.shape} not broadcastable",
                parameter="inputs",
            ) from e
        return [np.ascontiguousarray(self._func(a, b))]


class VectorMatMul(_Float32Mixin, CpuMatMul):
    pass


class VectorGemm(CpuGemm):
    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        a, b, c = self._operands(as_float32(self.op_type, inputs))
        y = np.dot(a, b)
        if self.alpha != 1.0:
            y *= np.float32(self.alpha)
        if c is not None and self.beta != 0:
            y += np.float32(self.beta) * c
        return [y]


class VectorSoftmax(_Float32Mixin, CpuSoftmax):
    pass


class VectorSum(_Float32Mixin, CpuSum):
    pass


class VectorBatchNormalization(CpuBatchNormalization):
    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x, scale, bias, mean, var = as_float32(self.op_type, inputs)
        factor = scale / np.sqrt(var + np.float32(self.epsilon))
        shift = bias - mean * factor
        shape = (1, -1) + (1,) * (x.ndim - 2)
        return [x * factor.reshape(shape) + shift.reshape(shape)]


class VectorInstanceNormalization(_Float32Mixin, CpuInstanceNormalization):
    pass


class VectorConv(CpuConv):
    """Conv lowered to im2col windows contracted with einsum."""

    def _conv2d(self, x: np.ndarray, w: np.ndarray, b: Optional[np.ndarray]) -> np.ndarray:
        x, w = as_float32(self.op_type, [x, w])
        _, _, height, width = x.shape
        c_out, c_in_group, kh, kw = w.shape
        stride_h, stride_w = self.strides
        dil_h, dil_w = self.dilations
        pad_top, pad_left, pad_bottom, pad_right = self.pads

        eff_kh = (kh - 1) * dil_h + 1
        eff_kw = (kw - 1) * dil_w + 1
        output_extent(height, pad_top, pad_bottom, eff_kh, stride_h)
        output_extent(width, pad_left, pad_right, eff_kw, stride_w)

        x_padded = np.pad(
            x, ((0, 0), (0, 0), (pad_top, pad_bottom), (pad_left, pad_right))
        )
        # N, C, H_out, W_out, kh, kw
        cols = sliding_window_view(x_padded, (eff_kh, eff_kw), axis=(2, 3))[
            :, :, ::stride_h, ::stride_w, ::dil_h, ::dil_w
        ]

        out_per_group = c_out // self.group
        groups = []
        for g in range(self.group):
            group_cols = cols[:, g * c_in_group : (g + 1) * c_in_group]
            group_w = w[g * out_per_group : (g + 1) * out_per_group]
            groups.append(np.einsum("nchwij,mcij->nmhw", group_cols, group_w, optimize=True))
        y = np.concatenate(groups, axis=1) if self.group > 1 else groups[0]

        if b is not None:
            y = y + b.astype(np.float32).reshape(1, -1, 1, 1)
        return np.ascontiguousarray(y, dtype=np.float32)


def _windows(x: np.ndarray, kernel_shape, strides) -> np.ndarray:
    kh, kw = kernel_shape
    return sliding_window_view(x, (kh, kw), axis=(2, 3))[:, :, :: strides[0], :: strides[1]]


class VectorMaxPool(CpuMaxPool):
    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        (x,) = as_float32(self.op_type, [ensure_nchw(inputs[0])])
        self._output_shape(x)
        pad_top, pad_left, pad_bottom, pad_right = self.pads
        x_padded = np.pad(
            x,
            ((0, 0), (0, 0), (pad_top, pad_bottom), (pad_left, pad_right)),
            constant_values=-np.inf,
        )
        windows = _windows(x_padded, self.kernel_shape, self.strides)
        return [windows.max(axis=(-2, -1))]


class VectorAveragePool(CpuAveragePool):
    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        (x,) = as_float32(self.op_type, [ensure_nchw(inputs[0])])
        self._output_shape(x)
        pad_top, pad_left, pad_bottom, pad_right = self.pads
        padding = ((0, 0), (0, 0), (pad_top, pad_bottom), (pad_left, pad_right))
        sums = _windows(np.pad(x, padding), self.kernel_shape, self.strides).sum(axis=(-2, -1))

        if self.count_include_pad:
            kh, kw = self.kernel_shape
            return [(sums / np.float32(kh * kw)).astype(np.float32)]

        mask = np.pad(np.ones((1, 1) + x.shape[2:], dtype=np.float32), padding)
        counts = _windows(mask, self.kernel_shape, self.strides).sum(axis=(-2, -1))
        return [(sums / counts).astype(np.float32)]


class VectorGlobalAveragePool(_Float32Mixin, CpuGlobalAveragePool):
    pass


class VectorGlobalMaxPool(_Float32Mixin, CpuGlobalMaxPool):
    pass
