# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tests for Operator Catalogs

Validates:
- Version-range matching
- Most-specific / most-recent precedence
- Conflict detection at build time and on direct construction
- Immutability after build
"""

from functools import partial

import numpy as np
import pytest

from kernelbind.backends import Backend
from kernelbind.catalog import CatalogBuilder, CatalogEntry, OperatorCatalog
from kernelbind.core import OperatorIdentity, VersionRange
from kernelbind.errors import CatalogConflictError
from kernelbind.kernels import Kernel


class AddV1(Kernel):
    op_type = "Add"
    min_inputs = 2
    max_inputs = 2

    def _compute(self, inputs):
        return [inputs[0] + inputs[1]]


class AddV7(AddV1):
    pass


class AddV13(AddV1):
    pass


class TestCatalogLookup:
    """Tests for catalog lookup."""

    def test_hit_and_miss(self):
        catalog = CatalogBuilder().add("Add", "1-10", AddV1).build()
        entry = catalog.lookup("Add", 9)
        assert entry is not None
        assert entry.factory is AddV1
        assert catalog.lookup("Add", 11) is None
        assert catalog.lookup("Sub", 9) is None

    def test_lookup_identity_checks_domain(self):
        catalog = CatalogBuilder("ai.onnx").add("Add", "7+", AddV7).build()
        assert catalog.lookup_identity(OperatorIdentity("Add", "", 13)) is not None
        assert catalog.lookup_identity(OperatorIdentity("Add", "com.microsoft", 13)) is None

    def test_narrowest_range_wins(self):
        catalog = (
            CatalogBuilder()
            .add("Add", "7-12", AddV7)
            .add("Add", "1+", AddV1)
            .add("Add", "13", AddV13)
            .build()
        )
        assert catalog.lookup("Add", 9).factory is AddV7
        assert catalog.lookup("Add", 13).factory is AddV13
        assert catalog.lookup("Add", 14).factory is AddV1
        assert catalog.lookup("Add", 3).factory is AddV1

    def test_finite_beats_open_ended(self):
        catalog = CatalogBuilder().add("Add", "7+", AddV1).add("Add", "7-100", AddV7).build()
        assert catalog.lookup("Add", 50).factory is AddV7

    def test_equal_width_most_recent_wins(self):
        catalog = CatalogBuilder().add("Add", "5-10", AddV1).add("Add", "7-12", AddV7).build()
        assert catalog.lookup("Add", 8).factory is AddV7
        assert catalog.lookup("Add", 6).factory is AddV1
        assert catalog.lookup("Add", 11).factory is AddV7

    def test_queries(self):
        catalog = (
            CatalogBuilder()
            .add("Sub", "7+", partial(AddV1))
            .add("Add", "7-12", AddV7)
            .add("Add", "13+", AddV13)
            .build()
        )
        assert catalog.op_types() == ["Add", "Sub"]
        assert len(catalog) == 3
        assert "Add" in catalog
        assert "Mul" not in catalog
        assert catalog.supports("Add", 13)
        assert not catalog.supports("Add", 6)
        assert [e.op_type for e in catalog.entries()] == ["Sub", "Add", "Add"]

    def test_empty_catalog(self):
        catalog = OperatorCatalog.empty("com.example")
        assert catalog.domain == "com.example"
        assert len(catalog) == 0
        assert catalog.lookup("Add", 7) is None


class TestCatalogEntry:
    """Tests for CatalogEntry."""

    def test_create_returns_fresh_kernels(self):
        entry = CatalogBuilder().add("Add", "7+", AddV7).build().lookup("Add", 7)
        a, b = entry.create(), entry.create()
        assert isinstance(a, AddV7)
        assert a is not b

    def test_factory_must_return_kernel(self):
        entry = CatalogBuilder().add("Add", "7+", lambda: object()).build().lookup("Add", 7)
        with pytest.raises(TypeError):
            entry.create()

    def test_kernel_name_unwraps_partial(self):
        entry = CatalogBuilder().add("Add", "7+", partial(partial(AddV7))).build().lookup("Add", 7)
        assert entry.kernel_name == "AddV7"

    def test_matches(self):
        entry = CatalogBuilder().add("Add", "7-9", AddV7).build().lookup("Add", 8)
        assert entry.matches("Add", 7)
        assert not entry.matches("Add", 10)
        assert not entry.matches("Sub", 8)


class TestCatalogBuilder:
    """Tests for the registration surface."""

    def test_exact_duplicate_range_conflicts(self):
        builder = CatalogBuilder().add("Add", "7-12", AddV1).add("Add", "7-12", AddV7)
        with pytest.raises(CatalogConflictError) as exc_info:
            builder.build(backend="test")
        assert exc_info.value.op_type == "Add"
        assert exc_info.value.versions == "7-12"
        assert exc_info.value.backend == "test"

    def test_overlapping_ranges_do_not_conflict(self):
        catalog = CatalogBuilder().add("Add", "7-12", AddV1).add("Add", "7+", AddV7).build()
        assert len(catalog) == 2

    def test_same_range_different_ops_ok(self):
        catalog = CatalogBuilder().add("Add", "7+", AddV1).add("Sub", "7+", AddV1).build()
        assert len(catalog) == 2

    def test_register_decorator(self):
        builder = CatalogBuilder()

        @builder.register("Relu", "6+")
        class Relu(Kernel):
            op_type = "Relu"

            def _compute(self, inputs):
                return [np.maximum(inputs[0], 0)]

        catalog = builder.build()
        assert catalog.lookup("Relu", 14).factory is Relu

    def test_extend(self):
        catalog = CatalogBuilder().extend([("Add", "7+", AddV7), ("Add", "1-6", AddV1)]).build()
        assert catalog.lookup("Add", 3).factory is AddV1

    def test_sealed_after_build(self):
        builder = CatalogBuilder().add("Add", "7+", AddV7)
        builder.build()
        with pytest.raises(RuntimeError):
            builder.add("Sub", "7+", AddV7)

    def test_factory_must_be_callable(self):
        with pytest.raises(TypeError):
            CatalogBuilder().add("Add", "7+", "not callable")

    def test_catalog_mapping_read_only(self):
        catalog = CatalogBuilder().add("Add", "7+", AddV7).build()
        with pytest.raises(TypeError):
            catalog._entries["Sub"] = ()


def entry(op_type, versions, factory, index, domain="ai.onnx"):
    return CatalogEntry(
        op_type=op_type,
        domain=domain,
        versions=VersionRange.parse(versions),
        factory=factory,
        registration_index=index,
    )


class TestCatalogConstruction:
    """Tests for catalogs built from entries directly."""

    def test_duplicate_range_conflicts(self):
        entries = [entry("Add", "7+", AddV1, 0), entry("Add", "7+", AddV7, 1)]
        with pytest.raises(CatalogConflictError) as exc_info:
            OperatorCatalog("ai.onnx", entries)
        assert exc_info.value.versions == "7+"

    def test_duplicate_range_fails_backend_construction(self):
        with pytest.raises(CatalogConflictError):
            Backend(
                "dup",
                [OperatorCatalog("ai.onnx", [entry("Add", "7+", AddV1, 0), entry("Add", "7+", AddV7, 1)])],
            )

    def test_foreign_domain_entry_rejected(self):
        with pytest.raises(CatalogConflictError) as exc_info:
            OperatorCatalog("ai.onnx", [entry("Gelu", "1+", AddV1, 0, domain="com.microsoft")])
        assert exc_info.value.domain == "com.microsoft"

    def test_empty_domain_entry_accepted(self):
        catalog = OperatorCatalog("ai.onnx", [entry("Add", "7+", AddV7, 0, domain="")])
        assert catalog.lookup("Add", 13).factory is AddV7

    def test_failed_build_leaves_builder_open(self):
        builder = CatalogBuilder().add("Add", "7+", AddV1).add("Add", "7+", AddV7)
        with pytest.raises(CatalogConflictError):
            builder.build()
        builder.add("Sub", "7+", AddV1)
