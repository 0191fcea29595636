# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Vector Backend

Narrow catalog of vectorized float32 kernels covering the common
convolutional-network operators. Operators outside this set are expected
to come from a fallback backend (normally ``cpu``).
"""

from __future__ import annotations

from functools import partial

import numpy as np

from ...catalog import CatalogBuilder, OperatorCatalog
from ..base import Backend
from ..cpu.ops.math_ops import prelu
from .ops import (
    VectorAveragePool,
    VectorBatchNormalization,
    VectorBinaryOp,
    VectorConv,
    VectorGemm,
    VectorGlobalAveragePool,
    VectorGlobalMaxPool,
    VectorInstanceNormalization,
    VectorMatMul,
    VectorMaxPool,
    VectorSoftmax,
    VectorSum,
)

_BOOL = ("bool",)

# (op_type, versions, factory)
VECTOR_OP_RULES = [
    # Binary arithmetic ops
    ("Add", "7+", partial(VectorBinaryOp, "Add", np.add)),
    ("Sub", "7+", partial(VectorBinaryOp, "Sub", np.subtract)),
    ("Mul", "7+", partial(VectorBinaryOp, "Mul", np.multiply)),
    ("Div", "7+", partial(VectorBinaryOp, "Div", np.divide)),
    ("PRelu", "7+", partial(VectorBinaryOp, "PRelu", prelu)),
    # Binary logical ops
    ("Xor", "7+", partial(VectorBinaryOp, "Xor", np.logical_xor, _BOOL)),
    ("Or", "7+", partial(VectorBinaryOp, "Or", np.logical_or, _BOOL)),
    ("And", "7+", partial(VectorBinaryOp, "And", np.logical_and, _BOOL)),
    # Misc ops
    ("Conv", "1+", VectorConv),
    ("BatchNormalization", "7+", VectorBatchNormalization),
    ("Gemm", "7-10", partial(VectorGemm, optional_c=False)),
    ("Gemm", "11+", VectorGemm),
    ("MatMul", "1+", VectorMatMul),
    ("Softmax", "1-12", partial(VectorSoftmax, legacy=True)),
    ("Softmax", "13+", VectorSoftmax),
    ("Sum", "6+", VectorSum),
    ("AveragePool", "1+", VectorAveragePool),
    ("MaxPool", "1+", VectorMaxPool),
    ("GlobalMaxPool", "1+", VectorGlobalMaxPool),
    ("GlobalAveragePool", "1+", VectorGlobalAveragePool),
    ("InstanceNormalization", "6+", VectorInstanceNormalization),
]


class VectorBackend(Backend):
    """Vectorized float32 backend for the standard domain only."""

    name = "vector"

    def _build_catalogs(self) -> list[OperatorCatalog]:
        return [
            CatalogBuilder("ai.onnx").extend(VECTOR_OP_RULES).build(backend=self.name),
        ]


__all__ = ["VectorBackend", "VECTOR_OP_RULES"]
