# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Mathematical Operators

Implements ONNX math operators as CPU reference kernels:
- Binary element-wise ops with numpy broadcasting
  (Add, Sub, Mul, Div, Pow, PRelu, And, Or, Xor, Equal, Less, Greater)
- MatMul: Matrix multiplication
- Gemm: General matrix multiply (opset 7-10 and 11+)
- Sum: Variadic element-wise sum
"""

from __future__ import annotations

import functools
from typing import Callable, Optional, Sequence

import numpy as np

from ....core.attributes import Attributes
from ....errors import ValidationError
from ....kernels.base import Kernel


def prelu(x: np.ndarray, slope: np.ndarray) -> np.ndarray:
    return np.where(x < 0, x * slope, x).astype(x.dtype)


class CpuBinaryOp(Kernel):
    """
    Element-wise binary operator with numpy broadcasting.

    Args:
        op_type: ONNX operator type.
        func: Binary numpy function.
        types: Accepted input dtype names (None accepts any).
    """

    min_inputs = 2
    max_inputs = 2

    def __init__(
        self,
        op_type: str,
        func: Callable[[np.ndarray, np.ndarray], np.ndarray],
        types: Optional[Sequence[str]] = None,
    ):
        super().__init__()
        self.op_type = op_type
        self._func = func
        self.types = tuple(types) if types else None

    def _check_types(self, inputs: list[np.ndarray]) -> None:
        if self.types is None:
            return
        for x in inputs:
            if x.dtype.name not in self.types:
                raise ValidationError(
                    f"{self.op_type} does not accept {x.dtype.name} inputs",
                    parameter="inputs",
                    expected=", ".join(self.types),
                    received=x.dtype.name,
                )

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        self._check_types(inputs)
        a, b = inputs
        try:
            np.broadcast_shapes(a.shape, b.shape)
        except ValueError as e:
            raise ValidationError(
                f"shapes {a.shape} and {b.shape} not broadcastable",
                parameter="inputs",
            ) from e
        return [np.asarray(self._func(a, b))]


class CpuMatMul(Kernel):
    """
    Matrix multiplication operator.

    ONNX Spec: C = MatMul(A, B), numpy matmul semantics.
    """

    op_type = "MatMul"
    min_inputs = 2
    max_inputs = 2

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [np.matmul(inputs[0], inputs[1])]


class CpuGemm(Kernel):
    """
    General Matrix Multiply operator.

    ONNX Spec: Y = alpha * A' * B' + beta * C
    Where A' = transpose(A) if transA, A otherwise
    And B' = transpose(B) if transB, B otherwise

    Opset 7-10 requires C; opset 11+ makes it optional.
    """

    op_type = "Gemm"
    min_inputs = 2
    max_inputs = 3

    def __init__(self, optional_c: bool = True):
        super().__init__()
        self.optional_c = optional_c
        if not optional_c:
            self.min_inputs = 3

    def _configure(self, attributes: Attributes) -> None:
        self.alpha = attributes.get_float("alpha", 1.0)
        self.beta = attributes.get_float("beta", 1.0)
        self.trans_a = attributes.get_int("transA", 0)
        self.trans_b = attributes.get_int("transB", 0)
        for name, value in (("transA", self.trans_a), ("transB", self.trans_b)):
            if value not in (0, 1):
                raise ValidationError(
                    f"{name} must be 0 or 1",
                    parameter=name,
                    expected="0 or 1",
                    received=str(value),
                )

    def _operands(self, inputs: list[np.ndarray]):
        a, b = inputs[0], inputs[1]
        if a.ndim != 2 or b.ndim != 2:
            raise ValidationError(
                "Gemm expects 2D inputs",
                parameter="inputs",
                received=f"{a.shape}, {b.shape}",
            )
        if self.trans_a:
            a = a.T
        if self.trans_b:
            b = b.T
        c = inputs[2] if len(inputs) > 2 else None
        return a, b, c

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        a, b, c = self._operands(inputs)
        y = self.alpha * np.matmul(a, b)
        if c is not None and self.beta != 0:
            y = y + self.beta * c
        return [y.astype(np.result_type(a, b), copy=False)]


class CpuSum(Kernel):
    """Element-wise sum of a variadic list of inputs."""

    op_type = "Sum"
    max_inputs = None

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        return [functools.reduce(np.add, inputs)]
