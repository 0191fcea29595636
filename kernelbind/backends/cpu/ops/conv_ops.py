# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Convolution and Pooling Operators

Implements ONNX spatial operators as CPU reference kernels (NCHW, 2D):
- Conv: 2D convolution with groups, strides, pads and dilations
- MaxPool: Max pooling
- AveragePool: Average pooling
- GlobalAveragePool / GlobalMaxPool: Reduce over all spatial dims

The reference kernels loop over output positions. They are slow but
straightforward, and serve as the correctness baseline for faster
backends.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ....core.attributes import Attributes
from ....errors import ValidationError
from ....kernels.base import Kernel

_SUPPORTED_AUTO_PAD = ("NOTSET", "VALID")


def ensure_nchw(x: np.ndarray) -> np.ndarray:
    """Ensure array is in NCHW format (4D)."""
    if x.ndim == 3:
        return x.reshape(1, *x.shape)
    if x.ndim == 4:
        return x
    raise ValidationError(
        f"expected 3D or 4D tensor, got {x.ndim}D",
        parameter="X",
        expected="NCHW",
        received=str(x.shape),
    )


def read_spatial_attributes(
    attributes: Attributes,
    kernel_required: bool,
) -> dict:
    """
    Parse the attributes shared by Conv and pooling kernels.

    Only 2D spatial windows and explicit (NOTSET/VALID) padding are
    supported.
    """
    auto_pad = attributes.get_string("auto_pad", "NOTSET")
    if auto_pad not in _SUPPORTED_AUTO_PAD:
        raise ValidationError(
            f"auto_pad '{auto_pad}' is not supported",
            parameter="auto_pad",
            expected=" or ".join(_SUPPORTED_AUTO_PAD),
            received=auto_pad,
        )

    if kernel_required:
        kernel_shape: Optional[list[int]] = attributes.get_ints("kernel_shape")
    else:
        kernel_shape = attributes.get_ints("kernel_shape", None)
    if kernel_shape is not None and len(kernel_shape) != 2:
        raise ValidationError(
            "only 2D spatial windows are supported",
            parameter="kernel_shape",
            expected="2 values",
            received=str(kernel_shape),
        )

    strides = attributes.get_ints("strides", [1, 1])
    pads = attributes.get_ints("pads", [0, 0, 0, 0])
    dilations = attributes.get_ints("dilations", [1, 1])
    if auto_pad == "VALID":
        pads = [0, 0, 0, 0]

    if len(strides) != 2 or any(s < 1 for s in strides):
        raise ValidationError(f"invalid strides {strides}", parameter="strides")
    if len(pads) != 4 or any(p < 0 for p in pads):
        raise ValidationError(f"invalid pads {pads}", parameter="pads")
    if len(dilations) != 2 or any(d < 1 for d in dilations):
        raise ValidationError(f"invalid dilations {dilations}", parameter="dilations")

    return {
        "kernel_shape": kernel_shape,
        "strides": strides,
        "pads": pads,
        "dilations": dilations,
    }


def output_extent(size: int, pad_begin: int, pad_end: int, window: int, stride: int) -> int:
    extent = (size + pad_begin + pad_end - window) // stride + 1
    if extent < 1:
        raise ValidationError(
            f"window {window} larger than padded input {size + pad_begin + pad_end}",
            parameter="kernel_shape",
        )
    return extent


class CpuConv(Kernel):
    """
    2D Convolution operator.

    ONNX Spec: Y = Conv(X, W, B)
    """

    op_type = "Conv"
    min_inputs = 2
    max_inputs = 3

    def _configure(self, attributes: Attributes) -> None:
        spatial = read_spatial_attributes(attributes, kernel_required=False)
        self.kernel_shape = spatial["kernel_shape"]
        self.strides = spatial["strides"]
        self.pads = spatial["pads"]
        self.dilations = spatial["dilations"]
        self.group = attributes.get_int("group", 1)
        if self.group < 1:
            raise ValidationError(
                f"group must be positive, got {self.group}", parameter="group"
            )

    def _check_weights(self, x: np.ndarray, w: np.ndarray) -> None:
        if w.ndim != 4:
            raise ValidationError(
                f"expected 4D weights, got {w.ndim}D", parameter="W"
            )
        c_out, c_in_group = w.shape[:2]
        if self.kernel_shape is not None and list(w.shape[2:]) != self.kernel_shape:
            raise ValidationError(
                "kernel_shape does not match weights",
                parameter="kernel_shape",
                expected=str(list(w.shape[2:])),
                received=str(self.kernel_shape),
            )
        if x.shape[1] != c_in_group * self.group or c_out % self.group:
            raise ValidationError(
                "channel count inconsistent with group",
                parameter="group",
                received=f"C_in={x.shape[1]}, W={w.shape}, group={self.group}",
            )

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = ensure_nchw(inputs[0])
        w = inputs[1]
        b = inputs[2] if len(inputs) > 2 else None
        self._check_weights(x, w)
        return [self._conv2d(x, w, b)]

    def _conv2d(self, x: np.ndarray, w: np.ndarray, b: Optional[np.ndarray]) -> np.ndarray:
        n_batch, _, height, width = x.shape
        c_out, c_in_group, kh, kw = w.shape
        stride_h, stride_w = self.strides
        dil_h, dil_w = self.dilations
        pad_top, pad_left, pad_bottom, pad_right = self.pads

        eff_kh = (kh - 1) * dil_h + 1
        eff_kw = (kw - 1) * dil_w + 1
        h_out = output_extent(height, pad_top, pad_bottom, eff_kh, stride_h)
        w_out = output_extent(width, pad_left, pad_right, eff_kw, stride_w)

        x_padded = np.pad(
            x,
            ((0, 0), (0, 0), (pad_top, pad_bottom), (pad_left, pad_right)),
            mode="constant",
        )
        y = np.zeros((n_batch, c_out, h_out, w_out), dtype=np.result_type(x, w))
        out_per_group = c_out // self.group

        for n in range(n_batch):
            for m in range(c_out):
                g = m // out_per_group
                channels = x_padded[n, g * c_in_group : (g + 1) * c_in_group]
                for h in range(h_out):
                    for col in range(w_out):
                        h_start = h * stride_h
                        w_start = col * stride_w
                        patch = channels[
                            :,
                            h_start : h_start + eff_kh : dil_h,
                            w_start : w_start + eff_kw : dil_w,
                        ]
                        y[n, m, h, col] = np.sum(patch * w[m])

        if b is not None:
            y += b.reshape(1, -1, 1, 1)

        return y


class _CpuPool(Kernel):
    """Shared attribute handling for windowed pooling."""

    def _configure(self, attributes: Attributes) -> None:
        spatial = read_spatial_attributes(attributes, kernel_required=True)
        self.kernel_shape = spatial["kernel_shape"]
        self.strides = spatial["strides"]
        self.pads = spatial["pads"]
        if spatial["dilations"] != [1, 1]:
            raise ValidationError("dilated pooling is not supported", parameter="dilations")
        if attributes.get_int("ceil_mode", 0) != 0:
            raise ValidationError("ceil_mode is not supported", parameter="ceil_mode")
        if attributes.get_int("storage_order", 0) != 0:
            raise ValidationError(
                "column-major storage_order is not supported", parameter="storage_order"
            )
        self.count_include_pad = attributes.get_int("count_include_pad", 0)

    def _output_shape(self, x: np.ndarray) -> tuple[int, int]:
        _, _, height, width = x.shape
        kh, kw = self.kernel_shape
        pad_top, pad_left, pad_bottom, pad_right = self.pads
        return (
            output_extent(height, pad_top, pad_bottom, kh, self.strides[0]),
            output_extent(width, pad_left, pad_right, kw, self.strides[1]),
        )

    def _pool(self, x: np.ndarray, mode: str) -> np.ndarray:
        n_batch, channels, height, width = x.shape
        kh, kw = self.kernel_shape
        stride_h, stride_w = self.strides
        pad_top, pad_left = self.pads[0], self.pads[1]
        h_out, w_out = self._output_shape(x)

        y = np.zeros((n_batch, channels, h_out, w_out), dtype=x.dtype)

        for n in range(n_batch):
            for c in range(channels):
                for h in range(h_out):
                    for w in range(w_out):
                        h_start = h * stride_h - pad_top
                        w_start = w * stride_w - pad_left
                        h_end = min(h_start + kh, height)
                        w_end = min(w_start + kw, width)
                        window = x[n, c, max(h_start, 0) : h_end, max(w_start, 0) : w_end]
                        if mode == "max":
                            y[n, c, h, w] = np.max(window)
                        else:
                            count = kh * kw if self.count_include_pad else window.size
                            y[n, c, h, w] = np.sum(window) / count

        return y


class CpuMaxPool(_CpuPool):
    """Max Pooling operator."""

    op_type = "MaxPool"

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [self._pool(ensure_nchw(inputs[0]), "max")]


class CpuAveragePool(_CpuPool):
    """Average Pooling operator."""

    op_type = "AveragePool"

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [self._pool(ensure_nchw(inputs[0]), "avg")]


class CpuGlobalAveragePool(Kernel):
    """Global Average Pooling operator."""

    op_type = "GlobalAveragePool"

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        axes = tuple(range(2, x.ndim))
        return [np.mean(x, axis=axes, keepdims=True).astype(x.dtype)]


class CpuGlobalMaxPool(Kernel):
    """Global Max Pooling operator."""

    op_type = "GlobalMaxPool"

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        axes = tuple(range(2, x.ndim))
        return [np.max(x, axis=axes, keepdims=True)]
