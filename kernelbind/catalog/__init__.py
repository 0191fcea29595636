# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Operator Catalogs

Components:
- CatalogBuilder: Collects (op_type, versions, factory) registrations
- OperatorCatalog: Immutable per-domain lookup table
- CatalogEntry: One registered kernel factory
"""

from .catalog import CatalogBuilder, CatalogEntry, OperatorCatalog, VersionSelector

__all__ = [
    "CatalogBuilder",
    "CatalogEntry",
    "OperatorCatalog",
    "VersionSelector",
]
