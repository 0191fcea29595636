# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Graph Node

Represents a single operation in the computation graph as handed over by
the graph loader. Nodes are immutable once the graph is loaded.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
import itertools

from .attributes import Attributes


# Node ID counter
_node_id_counter = itertools.count()


@dataclass(frozen=True, eq=False)
class GraphNode:
    """
    A single operation (node) in the computation graph.

    ``domain`` and ``version`` are optional per-node overrides; when unset
    the session's opset configuration applies. Nodes compare by identity.
    """

    op_type: str
    name: str = ""
    attributes: Attributes = field(default_factory=Attributes)
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    domain: Optional[str] = None
    version: Optional[int] = None

    # Auto-generated ID
    id: int = field(
        default_factory=lambda: next(_node_id_counter), init=False, compare=False
    )

    def __post_init__(self):
        if not isinstance(self.attributes, Attributes):
            object.__setattr__(self, "attributes", Attributes(self.attributes))
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        if not self.name:
            object.__setattr__(self, "name", f"{self.op_type}_{self.id}")

    @classmethod
    def create(
        cls,
        op_type: str,
        name: str = "",
        attrs: Optional[Mapping[str, Any]] = None,
        inputs: Optional[list[str]] = None,
        outputs: Optional[list[str]] = None,
        domain: Optional[str] = None,
        version: Optional[int] = None,
    ) -> "GraphNode":
        """Build a node from plain Python containers."""
        return cls(
            op_type=op_type,
            name=name,
            attributes=Attributes(attrs),
            inputs=tuple(inputs or ()),
            outputs=tuple(outputs or ()),
            domain=domain,
            version=version,
        )

    def num_inputs(self) -> int:
        """Get number of inputs."""
        return len(self.inputs)

    def num_outputs(self) -> int:
        """Get number of outputs."""
        return len(self.outputs)

    def is_op(self, op: str) -> bool:
        """Check if this is a specific operation type."""
        return self.op_type == op

    def __repr__(self) -> str:
        return f"GraphNode(op='{self.op_type}', name='{self.name}')"
