# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Graph

Minimal ordered container of graph nodes plus the opset imports the model
was exported with. Parsing model files into a Graph is the job of an
external loader.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .node import GraphNode
from .types import normalize_domain


@dataclass
class Graph:
    """
    Ordered list of nodes with their opset imports.

    Nodes are kept in execution order as supplied by the loader.
    """

    name: str = ""
    opset_imports: dict[str, int] = field(default_factory=dict)
    _nodes: list[GraphNode] = field(default_factory=list, init=False, repr=False)
    _name_to_node: dict[str, GraphNode] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self):
        self.opset_imports = {
            normalize_domain(domain): int(version)
            for domain, version in self.opset_imports.items()
        }

    def add_node(
        self,
        op_type: str,
        name: str = "",
        attrs: Optional[Mapping[str, Any]] = None,
        inputs: Optional[list[str]] = None,
        outputs: Optional[list[str]] = None,
        domain: Optional[str] = None,
        version: Optional[int] = None,
    ) -> GraphNode:
        """Add a node to the graph."""
        node = GraphNode.create(
            op_type,
            name=name,
            attrs=attrs,
            inputs=inputs,
            outputs=outputs,
            domain=domain,
            version=version,
        )
        if node.name in self._name_to_node:
            raise ValueError(f"Duplicate node name: {node.name}")
        self._nodes.append(node)
        self._name_to_node[node.name] = node
        return node

    def get_node(self, name: str) -> Optional[GraphNode]:
        """Get node by name."""
        return self._name_to_node.get(name)

    @property
    def nodes(self) -> list[GraphNode]:
        """Get all nodes."""
        return list(self._nodes)

    def num_nodes(self) -> int:
        """Get number of nodes."""
        return len(self._nodes)

    def count_ops(self) -> dict[str, int]:
        """Count nodes by operation type."""
        counts: dict[str, int] = {}
        for node in self._nodes:
            counts[node.op_type] = counts.get(node.op_type, 0) + 1
        return counts

    def summary(self) -> str:
        """Print graph summary."""
        lines = [
            f"Graph: {self.name}",
            f"  Nodes: {len(self._nodes)}",
            "  Opsets:",
        ]
        for domain, version in self.opset_imports.items():
            lines.append(f"    {domain}: {version}")
        lines.append("  Operations:")
        for op, count in self.count_ops().items():
            lines.append(f"    {op}: {count}")

        return "\n".join(lines)

    def __iter__(self):
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"Graph(name='{self.name}', nodes={len(self._nodes)})"
