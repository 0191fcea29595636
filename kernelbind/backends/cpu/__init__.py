# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
CPU Backend

Broad numpy reference catalog. Always available, and the usual fallback
for narrower backends.
"""

from __future__ import annotations

from functools import partial

import numpy as np

from ...catalog import CatalogBuilder, OperatorCatalog
from ..base import Backend
from .ops.activation_ops import (
    CpuClip,
    CpuClipV11,
    CpuDropout,
    CpuElu,
    CpuErf,
    CpuIdentity,
    CpuLeakyRelu,
    CpuSoftmax,
    CpuUnaryOp,
    relu,
    sigmoid,
)
from .ops.conv_ops import (
    CpuAveragePool,
    CpuConv,
    CpuGlobalAveragePool,
    CpuGlobalMaxPool,
    CpuMaxPool,
)
from .ops.math_ops import CpuBinaryOp, CpuGemm, CpuMatMul, CpuSum, prelu
from .ops.norm_ops import CpuBatchNormalization, CpuGelu, CpuInstanceNormalization
from .ops.shape_ops import CpuConcat, CpuFlatten, CpuReshape, CpuTranspose

_BOOL = ("bool",)

# (op_type, versions, factory)
CPU_OP_RULES = [
    # Unary math
    ("Abs", "6+", partial(CpuUnaryOp, "Abs", np.abs)),
    ("Neg", "6+", partial(CpuUnaryOp, "Neg", np.negative)),
    ("Exp", "6+", partial(CpuUnaryOp, "Exp", np.exp)),
    ("Log", "6+", partial(CpuUnaryOp, "Log", np.log)),
    ("Sqrt", "6+", partial(CpuUnaryOp, "Sqrt", np.sqrt)),
    ("Floor", "6+", partial(CpuUnaryOp, "Floor", np.floor)),
    ("Ceil", "6+", partial(CpuUnaryOp, "Ceil", np.ceil)),
    ("Erf", "9+", CpuErf),
    # Activations
    ("Relu", "6+", partial(CpuUnaryOp, "Relu", relu)),
    ("Sigmoid", "6+", partial(CpuUnaryOp, "Sigmoid", sigmoid)),
    ("Tanh", "6+", partial(CpuUnaryOp, "Tanh", np.tanh)),
    ("LeakyRelu", "6+", CpuLeakyRelu),
    ("Elu", "6+", CpuElu),
    ("Clip", "6-10", CpuClip),
    ("Clip", "11+", CpuClipV11),
    ("Softmax", "1-12", partial(CpuSoftmax, legacy=True)),
    ("Softmax", "13+", CpuSoftmax),
    ("Identity", "1+", CpuIdentity),
    ("Dropout", "7+", CpuDropout),
    # Binary arithmetic
    ("Add", "7+", partial(CpuBinaryOp, "Add", np.add)),
    ("Sub", "7+", partial(CpuBinaryOp, "Sub", np.subtract)),
    ("Mul", "7+", partial(CpuBinaryOp, "Mul", np.multiply)),
    ("Div", "7+", partial(CpuBinaryOp, "Div", np.divide)),
    ("Pow", "7+", partial(CpuBinaryOp, "Pow", np.power)),
    ("PRelu", "7+", partial(CpuBinaryOp, "PRelu", prelu)),
    # Binary logical
    ("And", "7+", partial(CpuBinaryOp, "And", np.logical_and, _BOOL)),
    ("Or", "7+", partial(CpuBinaryOp, "Or", np.logical_or, _BOOL)),
    ("Xor", "7+", partial(CpuBinaryOp, "Xor", np.logical_xor, _BOOL)),
    ("Equal", "7+", partial(CpuBinaryOp, "Equal", np.equal)),
    ("Less", "7+", partial(CpuBinaryOp, "Less", np.less)),
    ("Greater", "7+", partial(CpuBinaryOp, "Greater", np.greater)),
    # Linear algebra
    ("MatMul", "1+", CpuMatMul),
    ("Gemm", "7-10", partial(CpuGemm, optional_c=False)),
    ("Gemm", "11+", CpuGemm),
    ("Sum", "6+", CpuSum),
    # Shape
    ("Flatten", "1+", CpuFlatten),
    ("Reshape", "5+", CpuReshape),
    ("Transpose", "1+", CpuTranspose),
    ("Concat", "4+", CpuConcat),
    # Spatial
    ("Conv", "1+", CpuConv),
    ("MaxPool", "1+", CpuMaxPool),
    ("AveragePool", "1+", CpuAveragePool),
    ("GlobalAveragePool", "1+", CpuGlobalAveragePool),
    ("GlobalMaxPool", "1+", CpuGlobalMaxPool),
    # Normalization
    ("BatchNormalization", "7+", CpuBatchNormalization),
    ("InstanceNormalization", "6+", CpuInstanceNormalization),
]

CPU_MS_OP_RULES = [
    ("Gelu", "1+", CpuGelu),
]


class CPUBackend(Backend):
    """
    CPU backend implementation.

    Uses the numpy reference kernels. Always available as fallback.
    """

    name = "cpu"

    def _build_catalogs(self) -> list[OperatorCatalog]:
        return [
            CatalogBuilder("ai.onnx").extend(CPU_OP_RULES).build(backend=self.name),
            CatalogBuilder("com.microsoft").extend(CPU_MS_OP_RULES).build(backend=self.name),
        ]


__all__ = ["CPUBackend", "CPU_OP_RULES", "CPU_MS_OP_RULES"]
