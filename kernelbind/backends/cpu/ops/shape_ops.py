# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Shape Manipulation Operators

Implements ONNX shape operators as CPU reference kernels:
- Flatten: Flatten to 2D at an axis
- Reshape: Reshape with a runtime shape tensor
- Transpose: Permute dimensions
- Concat: Concatenate along an axis
"""

from __future__ import annotations

import numpy as np

from ....core.attributes import Attributes
from ....errors import ValidationError
from ....kernels.base import Kernel


class CpuFlatten(Kernel):
    """
    Flatten operator.

    ONNX Spec: output shape is (prod(shape[:axis]), prod(shape[axis:])).
    """

    op_type = "Flatten"

    def _configure(self, attributes: Attributes) -> None:
        self.axis = attributes.get_int("axis", 1)

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        axis = self.axis + x.ndim if self.axis < 0 else self.axis
        if not 0 <= axis <= x.ndim:
            raise ValidationError(
                f"axis {self.axis} out of range for rank {x.ndim}", parameter="axis"
            )
        outer = int(np.prod(x.shape[:axis], dtype=np.int64))
        inner = int(np.prod(x.shape[axis:], dtype=np.int64))
        return [x.reshape(outer, inner)]


class CpuReshape(Kernel):
    """
    Reshape operator (opset 5+, shape as second input).

    A 0 in the target shape copies the input dimension unless
    ``allowzero`` is set; -1 infers the remaining dimension.
    """

    op_type = "Reshape"
    min_inputs = 2
    max_inputs = 2

    def _configure(self, attributes: Attributes) -> None:
        self.allowzero = attributes.get_int("allowzero", 0)

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x, shape = inputs
        target = [int(d) for d in shape.reshape(-1)]
        if not self.allowzero:
            target = [
                x.shape[i] if d == 0 and i < x.ndim else d
                for i, d in enumerate(target)
            ]
        try:
            return [x.reshape(target)]
        except ValueError as e:
            raise ValidationError(
                f"cannot reshape {x.shape} to {target}", parameter="shape"
            ) from e


class CpuTranspose(Kernel):
    """Transpose operator. Default permutation reverses the dimensions."""

    op_type = "Transpose"

    def _configure(self, attributes: Attributes) -> None:
        self.perm = attributes.get_ints("perm", None)
        if self.perm is not None and sorted(self.perm) != list(range(len(self.perm))):
            raise ValidationError(
                f"perm {self.perm} is not a permutation", parameter="perm"
            )

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        x = inputs[0]
        if self.perm is not None and len(self.perm) != x.ndim:
            raise ValidationError(
                f"perm has {len(self.perm)} entries for rank {x.ndim}",
                parameter="perm",
            )
        return [np.transpose(x, self.perm)]


class CpuConcat(Kernel):
    """Concat operator. ``axis`` is required (opset 4+)."""

    op_type = "Concat"
    max_inputs = None

    def _configure(self, attributes: Attributes) -> None:
        self.axis = attributes.get_int("axis")

    def _compute(self, inputs: list[np.ndarray]) -> list[np.ndarray]:
        try:
            return [np.concatenate(inputs, axis=self.axis)]
        except ValueError as e:
            raise ValidationError(str(e), parameter="inputs") from e
