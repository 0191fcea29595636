# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tests for Reference Kernels

Validates:
- Kernel lifecycle (constructed, initialized, disposed)
- Attribute validation at initialization
- CPU reference numerics against numpy
- Vector kernels agree with their CPU counterparts
"""

import math

import numpy as np
import pytest

from kernelbind.backends.cpu.ops.activation_ops import (
    CpuClip,
    CpuClipV11,
    CpuDropout,
    CpuErf,
    CpuLeakyRelu,
    CpuSoftmax,
)
from kernelbind.backends.cpu.ops.conv_ops import (
    CpuAveragePool,
    CpuConv,
    CpuGlobalAveragePool,
    CpuMaxPool,
)
from kernelbind.backends.cpu.ops.math_ops import CpuBinaryOp, CpuGemm, CpuSum
from kernelbind.backends.cpu.ops.norm_ops import (
    CpuBatchNormalization,
    CpuGelu,
    CpuInstanceNormalization,
)
from kernelbind.backends.cpu.ops.shape_ops import (
    CpuConcat,
    CpuFlatten,
    CpuReshape,
    CpuTranspose,
)
from kernelbind.backends.vector.ops import (
    VectorAveragePool,
    VectorBatchNormalization,
    VectorBinaryOp,
    VectorConv,
    VectorGemm,
    VectorMaxPool,
    VectorSoftmax,
)
from kernelbind.errors import (
    InvalidOperatorConfigurationError,
    SessionStateError,
    ValidationError,
)
from kernelbind.kernels import Kernel, KernelState


def run(kernel, inputs, attrs=None):
    """Initialize a kernel and invoke it once."""
    kernel.initialize(attrs or {})
    return kernel.invoke(None, inputs)


@pytest.fixture
def rng():
    return np.random.default_rng(0)


class TestKernelLifecycle:
    """Tests for the kernel state machine."""

    def test_states(self):
        kernel = CpuErf()
        assert kernel.state is KernelState.CONSTRUCTED
        assert not kernel.is_ready
        kernel.initialize({})
        assert kernel.is_ready
        assert kernel.attributes is not None
        kernel.dispose()
        assert kernel.state is KernelState.DISPOSED
        kernel.dispose()
        assert kernel.state is KernelState.DISPOSED

    def test_invoke_before_initialize(self):
        with pytest.raises(SessionStateError):
            CpuErf().invoke(None, [np.zeros(2)])

    def test_invoke_after_dispose(self):
        kernel = CpuErf()
        kernel.initialize({})
        kernel.dispose()
        with pytest.raises(SessionStateError):
            kernel.invoke(None, [np.zeros(2)])

    def test_initialize_twice(self):
        kernel = CpuErf()
        kernel.initialize({})
        with pytest.raises(SessionStateError):
            kernel.initialize({})

    def test_wrong_input_count(self):
        kernel = CpuBinaryOp("Add", np.add)
        kernel.initialize({})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.zeros(2)])

    def test_failed_initialize_stays_constructed(self):
        kernel = CpuClip()
        with pytest.raises(InvalidOperatorConfigurationError):
            kernel.initialize({"min": 2.0, "max": 1.0})
        assert kernel.state is KernelState.CONSTRUCTED

    def test_unexpected_configure_error_converted(self):
        class Lookup(Kernel):
            op_type = "Lookup"

            def _configure(self, attributes):
                self.pad = attributes.get_ints("pads")[3]

            def _compute(self, inputs):
                return inputs

        kernel = Lookup()
        with pytest.raises(InvalidOperatorConfigurationError) as exc_info:
            kernel.initialize({"pads": [1, 2]})
        assert exc_info.value.op_type == "Lookup"
        assert isinstance(exc_info.value.__cause__, IndexError)
        assert kernel.state is KernelState.CONSTRUCTED

    def test_dispose_completes_when_release_fails(self):
        class Leaky(Kernel):
            op_type = "Leaky"

            def _release(self):
                raise RuntimeError("release failed")

            def _compute(self, inputs):
                return inputs

        kernel = Leaky()
        kernel.initialize({})
        with pytest.raises(RuntimeError):
            kernel.dispose()
        assert kernel.state is KernelState.DISPOSED
        kernel.dispose()

    def test_repr(self):
        assert "CpuErf(Erf, CONSTRUCTED)" in repr(CpuErf())


class TestAttributeValidation:
    """Attribute problems surface as InvalidOperatorConfigurationError."""

    @pytest.mark.parametrize(
        "kernel,attrs",
        [
            (CpuClip(), {"min": 1.0, "max": 0.0}),
            (CpuConcat(), {}),
            (CpuConcat(), {"axis": "0"}),
            (CpuMaxPool(), {}),
            (CpuMaxPool(), {"kernel_shape": [2, 2, 2]}),
            (CpuMaxPool(), {"kernel_shape": [2, 2], "ceil_mode": 1}),
            (CpuAveragePool(), {"kernel_shape": [2, 2], "auto_pad": "SAME_UPPER"}),
            (CpuConv(), {"strides": [0, 1]}),
            (CpuConv(), {"group": 0}),
            (CpuGemm(), {"transA": 2}),
            (CpuDropout(), {"ratio": 1.5}),
            (CpuTranspose(), {"perm": [0, 0, 1]}),
            (CpuBatchNormalization(), {"spatial": 0}),
            (CpuLeakyRelu(), {"alpha": "x"}),
        ],
    )
    def test_rejects(self, kernel, attrs):
        with pytest.raises(InvalidOperatorConfigurationError) as exc_info:
            kernel.initialize(attrs)
        assert exc_info.value.op_type == kernel.op_type


class TestCpuNumerics:
    """CPU reference kernels against direct numpy computation."""

    def test_binary_broadcast(self):
        (y,) = run(CpuBinaryOp("Add", np.add), [np.ones((2, 3)), np.arange(3.0)])
        np.testing.assert_allclose(y, np.ones((2, 3)) + np.arange(3.0))

    def test_binary_not_broadcastable(self):
        kernel = CpuBinaryOp("Add", np.add)
        kernel.initialize({})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.ones((2, 3)), np.ones(4)])

    def test_logical_type_check(self):
        kernel = CpuBinaryOp("And", np.logical_and, ("bool",))
        kernel.initialize({})
        (y,) = kernel.invoke(None, [np.array([True, False]), np.array([True, True])])
        np.testing.assert_array_equal(y, [True, False])
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.ones(2), np.ones(2)])

    def test_erf(self):
        x = np.array([-1.0, 0.0, 0.5], dtype=np.float32)
        (y,) = run(CpuErf(), [x])
        assert y.dtype == np.float32
        np.testing.assert_allclose(y, [math.erf(v) for v in x], rtol=1e-6)

    def test_clip_versions(self):
        x = np.array([-2.0, 0.5, 3.0])
        (y,) = run(CpuClip(), [x], {"min": -1.0, "max": 1.0})
        np.testing.assert_array_equal(y, [-1.0, 0.5, 1.0])
        (y,) = run(CpuClipV11(), [x, np.array(-1.0), np.array(1.0)])
        np.testing.assert_array_equal(y, [-1.0, 0.5, 1.0])
        (y,) = run(CpuClipV11(), [x])
        np.testing.assert_array_equal(y, x)

    def test_dropout_pass_through(self):
        x = np.arange(4.0)
        y, mask = run(CpuDropout(), [x])
        np.testing.assert_array_equal(y, x)
        assert mask.dtype == np.bool_
        assert mask.all()

    def test_softmax_current(self, rng):
        x = rng.standard_normal((2, 3, 4))
        (y,) = run(CpuSoftmax(), [x])
        np.testing.assert_allclose(y.sum(axis=-1), np.ones((2, 3)))

    def test_softmax_legacy_coerces_to_2d(self, rng):
        x = rng.standard_normal((2, 3, 4))
        (y,) = run(CpuSoftmax(legacy=True), [x])
        np.testing.assert_allclose(y.reshape(2, -1).sum(axis=1), np.ones(2))
        assert y.shape == x.shape

    def test_softmax_axis_out_of_range(self):
        kernel = CpuSoftmax()
        kernel.initialize({"axis": 3})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.ones((2, 2))])

    @pytest.mark.parametrize("legacy", [True, False])
    @pytest.mark.parametrize("axis", [2, -3])
    def test_softmax_axis_bounds(self, legacy, axis):
        kernel = CpuSoftmax(legacy=legacy)
        kernel.initialize({"axis": axis})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.ones((2, 2))])

    def test_softmax_legacy_last_axis(self, rng):
        x = rng.standard_normal((2, 3))
        (y,) = run(CpuSoftmax(legacy=True), [x], {"axis": -1})
        np.testing.assert_allclose(y.sum(axis=1), np.ones(2))

    def test_gemm(self, rng):
        a, b, c = rng.standard_normal((3, 4)), rng.standard_normal((5, 4)), rng.standard_normal(5)
        (y,) = run(CpuGemm(), [a, b, c], {"transB": 1, "alpha": 2.0, "beta": 0.5})
        np.testing.assert_allclose(y, 2.0 * a @ b.T + 0.5 * c)

    def test_gemm_legacy_requires_c(self, rng):
        kernel = CpuGemm(optional_c=False)
        kernel.initialize({})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.ones((2, 2)), np.ones((2, 2))])

    def test_sum_variadic(self):
        (y,) = run(CpuSum(), [np.ones(3), np.ones(3), np.ones(3)])
        np.testing.assert_array_equal(y, [3.0, 3.0, 3.0])

    def test_flatten(self):
        (y,) = run(CpuFlatten(), [np.zeros((2, 3, 4))], {"axis": 2})
        assert y.shape == (6, 4)
        (y,) = run(CpuFlatten(), [np.zeros((2, 3, 4))], {"axis": 0})
        assert y.shape == (1, 24)

    def test_reshape(self):
        (y,) = run(CpuReshape(), [np.zeros((2, 3, 4)), np.array([0, -1])])
        assert y.shape == (2, 12)

    def test_transpose(self):
        (y,) = run(CpuTranspose(), [np.zeros((2, 3, 4))])
        assert y.shape == (4, 3, 2)
        (y,) = run(CpuTranspose(), [np.zeros((2, 3, 4))], {"perm": [1, 0, 2]})
        assert y.shape == (3, 2, 4)

    def test_concat(self):
        (y,) = run(CpuConcat(), [np.zeros((2, 3)), np.ones((2, 1))], {"axis": 1})
        assert y.shape == (2, 4)

    def test_conv_against_direct_sum(self, rng):
        x = rng.standard_normal((1, 2, 5, 5))
        w = rng.standard_normal((3, 2, 3, 3))
        b = rng.standard_normal(3)
        (y,) = run(CpuConv(), [x, w, b])
        assert y.shape == (1, 3, 3, 3)
        expected = np.sum(x[0, :, 1:4, 2:5] * w[1]) + b[1]
        np.testing.assert_allclose(y[0, 1, 1, 2], expected)

    def test_conv_kernel_shape_mismatch(self, rng):
        kernel = CpuConv()
        kernel.initialize({"kernel_shape": [2, 2]})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.zeros((1, 1, 4, 4)), np.zeros((1, 1, 3, 3))])

    def test_max_pool(self):
        x = np.arange(16.0).reshape(1, 1, 4, 4)
        (y,) = run(CpuMaxPool(), [x], {"kernel_shape": [2, 2], "strides": [2, 2]})
        np.testing.assert_array_equal(y[0, 0], [[5.0, 7.0], [13.0, 15.0]])

    def test_average_pool_excludes_pad(self):
        x = np.ones((1, 1, 2, 2))
        attrs = {"kernel_shape": [2, 2], "pads": [1, 1, 1, 1]}
        (y,) = run(CpuAveragePool(), [x], attrs)
        np.testing.assert_allclose(y, np.ones((1, 1, 3, 3)))
        (y,) = run(CpuAveragePool(), [x], dict(attrs, count_include_pad=1))
        assert y[0, 0, 0, 0] == pytest.approx(0.25)

    def test_global_average_pool(self, rng):
        x = rng.standard_normal((2, 3, 4, 4))
        (y,) = run(CpuGlobalAveragePool(), [x])
        np.testing.assert_allclose(y, x.mean(axis=(2, 3), keepdims=True))

    def test_batch_norm(self, rng):
        x = rng.standard_normal((2, 3, 4, 4))
        scale, bias = rng.standard_normal(3), rng.standard_normal(3)
        mean, var = rng.standard_normal(3), rng.random(3) + 0.5
        (y,) = run(CpuBatchNormalization(), [x, scale, bias, mean, var])
        shape = (1, 3, 1, 1)
        expected = (x - mean.reshape(shape)) / np.sqrt(var.reshape(shape) + 1e-5)
        expected = expected * scale.reshape(shape) + bias.reshape(shape)
        np.testing.assert_allclose(y, expected)

    def test_instance_norm(self, rng):
        x = rng.standard_normal((2, 3, 5))
        (y,) = run(CpuInstanceNormalization(), [x, np.ones(3), np.zeros(3)])
        np.testing.assert_allclose(y.mean(axis=2), np.zeros((2, 3)), atol=1e-7)

    def test_gelu(self):
        x = np.array([-1.0, 0.0, 1.0])
        (y,) = run(CpuGelu(), [x])
        expected = [0.5 * v * (1 + math.erf(v / math.sqrt(2))) for v in x]
        np.testing.assert_allclose(y, expected)


class TestVectorKernels:
    """Vector kernels agree with the CPU reference kernels."""

    def test_float32_only(self):
        kernel = VectorBinaryOp("Add", np.add)
        kernel.initialize({})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [np.ones(2), np.ones(2)])

    def test_bool_logical(self):
        kernel = VectorBinaryOp("Xor", np.logical_xor, ("bool",))
        kernel.initialize({})
        (y,) = kernel.invoke(None, [np.array([True, False]), np.array([True, True])])
        np.testing.assert_array_equal(y, [False, True])

    @pytest.mark.parametrize(
        "attrs",
        [
            {},
            {"strides": [2, 2]},
            {"pads": [1, 1, 1, 1]},
            {"dilations": [2, 2]},
            {"group": 2},
        ],
    )
    def test_conv(self, rng, attrs):
        x = rng.standard_normal((2, 4, 7, 7)).astype(np.float32)
        c_in = 4 // attrs.get("group", 1)
        w = rng.standard_normal((6, c_in, 3, 3)).astype(np.float32)
        b = rng.standard_normal(6).astype(np.float32)
        (expected,) = run(CpuConv(), [x, w, b], attrs)
        (y,) = run(VectorConv(), [x, w, b], attrs)
        assert y.dtype == np.float32
        np.testing.assert_allclose(y, expected, rtol=1e-4, atol=1e-4)

    @pytest.mark.parametrize(
        "attrs",
        [
            {"kernel_shape": [2, 2]},
            {"kernel_shape": [3, 3], "strides": [2, 2]},
            {"kernel_shape": [3, 3], "pads": [1, 1, 1, 1]},
            {"kernel_shape": [3, 3], "pads": [1, 1, 1, 1], "count_include_pad": 1},
        ],
    )
    def test_pooling(self, rng, attrs):
        x = rng.standard_normal((1, 2, 6, 6)).astype(np.float32)
        for cpu_kernel, vector_kernel in (
            (CpuMaxPool(), VectorMaxPool()),
            (CpuAveragePool(), VectorAveragePool()),
        ):
            (expected,) = run(cpu_kernel, [x], attrs)
            (y,) = run(vector_kernel, [x], attrs)
            np.testing.assert_allclose(y, expected, rtol=1e-5, atol=1e-6)

    def test_gemm(self, rng):
        a = rng.standard_normal((3, 4)).astype(np.float32)
        b = rng.standard_normal((4, 2)).astype(np.float32)
        c = rng.standard_normal(2).astype(np.float32)
        attrs = {"alpha": 0.5, "beta": 2.0}
        (expected,) = run(CpuGemm(), [a, b, c], attrs)
        (y,) = run(VectorGemm(), [a, b, c], attrs)
        np.testing.assert_allclose(y, expected, rtol=1e-5)

    def test_batch_norm(self, rng):
        x = rng.standard_normal((2, 3, 4, 4)).astype(np.float32)
        params = [rng.standard_normal(3).astype(np.float32) for _ in range(3)]
        var = (rng.random(3) + 0.5).astype(np.float32)
        inputs = [x, *params, var]
        (expected,) = run(CpuBatchNormalization(), inputs)
        (y,) = run(VectorBatchNormalization(), inputs)
        np.testing.assert_allclose(y, expected, rtol=1e-5, atol=1e-5)

    def test_softmax(self, rng):
        x = rng.standard_normal((2, 5)).astype(np.float32)
        (expected,) = run(CpuSoftmax(), [x])
        (y,) = run(VectorSoftmax(), [x])
        np.testing.assert_allclose(y, expected, rtol=1e-6)
        kernel = VectorSoftmax()
        kernel.initialize({})
        with pytest.raises(ValidationError):
            kernel.invoke(None, [x.astype(np.float64)])
