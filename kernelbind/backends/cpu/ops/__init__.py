# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
CPU Reference Operator Implementations

Operators are organized by category:
- activation_ops: unary math, activations, Identity, Dropout, Softmax
- math_ops: binary element-wise ops, MatMul, Gemm, Sum
- shape_ops: Flatten, Reshape, Transpose, Concat
- conv_ops: Conv, MaxPool, AveragePool, GlobalAveragePool, GlobalMaxPool
- norm_ops: BatchNormalization, InstanceNormalization, Gelu
"""

from . import activation_ops
from . import math_ops
from . import shape_ops
from . import conv_ops
from . import norm_ops

__all__ = [
    "activation_ops",
    "math_ops",
    "shape_ops",
    "conv_ops",
    "norm_ops",
]
