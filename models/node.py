"""
Node model for the Resource Allocation Graph Simulator.

Processes and resources are both graph nodes. Every node carries an
explicit kind; the name prefix agrees with it.
"""

from dataclasses import dataclass
from enum import Enum


PROCESS_PREFIX = "P"
RESOURCE_PREFIX = "R"


class NodeKind(Enum):
    """Kinds of nodes in a resource allocation graph."""
    PROCESS = "process"
    RESOURCE = "resource"


def is_process(name) -> bool:
    """Return True if the node name denotes a process."""
    return str(name).startswith(PROCESS_PREFIX)


def classify(name) -> NodeKind:
    """
    Classify a node name by its prefix.

    Args:
        name: Node identifier (any value, compared by its string form)

    Returns:
        NodeKind.PROCESS for names starting with the process prefix,
        NodeKind.RESOURCE otherwise
    """
    return NodeKind.PROCESS if is_process(name) else NodeKind.RESOURCE


@dataclass(frozen=True)
class Node:
    """
    A process or resource in the graph.

    Attributes:
        name: Identifier used on edges (e.g. "P1", "R2")
        kind: Process or resource
    """
    name: str
    kind: NodeKind

    def __post_init__(self):
        """Check that the name prefix matches the declared kind."""
        if classify(self.name) != self.kind:
            raise ValueError(
                f"Node {self.name}: name prefix does not match kind {self.kind.value}"
            )

    @classmethod
    def process(cls, number: int) -> "Node":
        """Build the process node with the given sequence number."""
        return cls(f"{PROCESS_PREFIX}{number}", NodeKind.PROCESS)

    @classmethod
    def resource(cls, number: int) -> "Node":
        """Build the resource node with the given sequence number."""
        return cls(f"{RESOURCE_PREFIX}{number}", NodeKind.RESOURCE)

    @property
    def is_process(self) -> bool:
        return self.kind == NodeKind.PROCESS

    def __str__(self) -> str:
        return self.name
