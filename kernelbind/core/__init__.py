# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""Kernelbind Core Module"""

from .types import (
    DEFAULT_DOMAIN,
    AttributeMap,
    AttributeValue,
    OperatorIdentity,
    VersionRange,
    normalize_domain,
)
from .attributes import Attributes
from .node import GraphNode
from .graph import Graph

__all__ = [
    "DEFAULT_DOMAIN",
    "AttributeMap",
    "AttributeValue",
    "OperatorIdentity",
    "VersionRange",
    "normalize_domain",
    "Attributes",
    "GraphNode",
    "Graph",
]
