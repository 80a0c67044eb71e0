"""
Edge model for the Resource Allocation Graph Simulator.

A request edge points from a process to the resource it waits for.
An allocation edge points from a resource to the process holding it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


KEY_SEPARATOR = "->"


class EdgeType(Enum):
    """Edge types in a resource allocation graph."""
    REQUEST = "request"
    ALLOCATION = "allocation"


def edge_key(from_node, to_node) -> str:
    """
    Build the fallback identifier for an edge without an id.

    Returns:
        String of the form "from->to"
    """
    return f"{from_node}{KEY_SEPARATOR}{to_node}"


def parse_edge_key(key) -> Optional[tuple]:
    """
    Split a "from->to" key into its endpoints.

    Returns:
        (from, to) tuple, or None if either part is missing
    """
    parts = str(key).split(KEY_SEPARATOR)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


@dataclass(frozen=True)
class Edge:
    """
    Directed edge between a process and a resource.

    Attributes:
        from_node: Source node name
        to_node: Destination node name
        edge_type: Request (P -> R) or allocation (R -> P)
        id: Unique edge identifier, preferred over position for deletion
    """
    from_node: str
    to_node: str
    edge_type: EdgeType = EdgeType.REQUEST
    id: Optional[Any] = None

    def matches(self, from_node, to_node) -> bool:
        """Check whether this edge joins the given endpoints."""
        return str(self.from_node) == str(from_node) and str(self.to_node) == str(to_node)

    @classmethod
    def from_dict(cls, data: Dict) -> "Edge":
        """
        Build an edge from its mapping form.

        Args:
            data: Dictionary with 'from', 'to', optional 'type' and 'id'

        Raises:
            ValueError: If an endpoint is missing or the type is unknown
        """
        if 'from' not in data or 'to' not in data:
            raise ValueError(f"Edge {data!r}: missing 'from' or 'to'")
        try:
            edge_type = EdgeType(data.get('type', EdgeType.REQUEST.value))
        except ValueError:
            raise ValueError(f"Edge {data!r}: unknown type {data.get('type')!r}")
        return cls(
            from_node=str(data['from']),
            to_node=str(data['to']),
            edge_type=edge_type,
            id=data.get('id')
        )

    def __str__(self) -> str:
        label = f"{self.id}: " if self.id is not None else ""
        return f"{label}{self.from_node} -> {self.to_node} ({self.edge_type.value})"
