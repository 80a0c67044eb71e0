"""
Graph model for the Resource Allocation Graph Simulator.

Owns the processes, resources and edges of a single-instance resource
allocation graph, assigns node names and edge ids, and exposes numpy
matrix views of the current graph.
"""

import numpy as np
from typing import List, Optional, Tuple, Union
from dataclasses import dataclass, field

from models.node import Node
from models.edge import Edge, EdgeType


@dataclass
class ResourceAllocationGraph:
    """
    Mutable resource allocation graph.

    Node names are assigned sequentially within each kind ("P1", "P2", ...
    and "R1", "R2", ...). Edge ids ("e1", "e2", ...) come from a counter
    that keeps increasing across deletions and is reset only by reset().

    Attributes:
        processes: Process nodes in creation order
        resources: Resource nodes in creation order
        edges: Edges in creation order
        adjacency_matrix: [N][N] Edge count per ordered node pair (processes first)
        request_matrix: [P][R] 1 where process i requests resource j
        allocation_matrix: [R][P] 1 where resource i is allocated to process j
        wait_for_matrix: [P][P] Non-zero where process i waits on process j
    """
    processes: List[Node] = field(default_factory=list)
    resources: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    _edge_counter: int = 1

    # Matrices (initialized as None, computed on first access)
    _adjacency_matrix: Optional[np.ndarray] = None
    _request_matrix: Optional[np.ndarray] = None
    _allocation_matrix: Optional[np.ndarray] = None
    _wait_for_matrix: Optional[np.ndarray] = None

    @property
    def process_names(self) -> List[str]:
        return [p.name for p in self.processes]

    @property
    def resource_names(self) -> List[str]:
        return [r.name for r in self.resources]

    @property
    def nodes(self) -> List[str]:
        """All node names, processes first. This is the detection seed order."""
        return self.process_names + self.resource_names

    @property
    def num_processes(self) -> int:
        return len(self.processes)

    @property
    def num_resources(self) -> int:
        return len(self.resources)

    def add_process(self) -> str:
        """
        Add a new process node.

        Returns:
            Name of the new process
        """
        node = Node.process(self.num_processes + 1)
        self.processes.append(node)
        self.refresh_matrices()
        return node.name

    def add_resource(self) -> str:
        """
        Add a new resource node.

        Returns:
            Name of the new resource
        """
        node = Node.resource(self.num_resources + 1)
        self.resources.append(node)
        self.refresh_matrices()
        return node.name

    def create_edge(
        self,
        process: str,
        resource: str,
        edge_type: Union[EdgeType, str] = EdgeType.REQUEST
    ) -> Optional[Edge]:
        """
        Create an edge between a process and a resource.

        Request edges point P -> R, allocation edges point R -> P.
        An edge identical in (from, to, type) to an existing edge is
        rejected so that duplicates never reach detection.

        Args:
            process: Process name
            resource: Resource name
            edge_type: EdgeType or its string value

        Returns:
            The new edge, or None if it duplicates an existing edge

        Raises:
            ValueError: If the process, resource or edge type is unknown
        """
        edge_type = EdgeType(edge_type)
        if process not in self.process_names:
            raise ValueError(f"Unknown process: {process}")
        if resource not in self.resource_names:
            raise ValueError(f"Unknown resource: {resource}")

        if edge_type == EdgeType.REQUEST:
            from_node, to_node = process, resource
        else:
            from_node, to_node = resource, process

        if self.find_edge(from_node, to_node, edge_type) is not None:
            return None

        edge = Edge(
            from_node=from_node,
            to_node=to_node,
            edge_type=edge_type,
            id=f"e{self._edge_counter}"
        )
        self._edge_counter += 1
        self.edges.append(edge)
        self.refresh_matrices()
        return edge

    def delete_edge(self, edge_id) -> bool:
        """
        Delete the edge with the given id.

        Returns:
            True if an edge was removed
        """
        remaining = [e for e in self.edges if str(e.id) != str(edge_id)]
        removed = len(remaining) != len(self.edges)
        self.edges = remaining
        if removed:
            self.refresh_matrices()
        return removed

    def get_edge(self, edge_id) -> Optional[Edge]:
        """Find an edge by id."""
        return next((e for e in self.edges if str(e.id) == str(edge_id)), None)

    def find_edge(
        self,
        from_node: str,
        to_node: str,
        edge_type: Optional[EdgeType] = None
    ) -> Optional[Edge]:
        """Find the first edge joining two nodes, optionally of a given type."""
        for edge in self.edges:
            if edge.matches(from_node, to_node):
                if edge_type is None or edge.edge_type == edge_type:
                    return edge
        return None

    def has_allocation_edges(self) -> bool:
        """True if any resource is currently allocated."""
        return any(e.edge_type == EdgeType.ALLOCATION for e in self.edges)

    def reset(self) -> None:
        """Remove all nodes and edges and restart edge numbering."""
        self.processes = []
        self.resources = []
        self.edges = []
        self._edge_counter = 1
        self.refresh_matrices()

    def snapshot(self) -> Tuple[Tuple[Edge, ...], List[str]]:
        """
        Take a consistent (edges, nodes) snapshot for detection.

        Returns:
            Tuple of (edges, node names)
        """
        return tuple(self.edges), list(self.nodes)

    @property
    def adjacency_matrix(self) -> np.ndarray:
        """Get adjacency matrix [N][N] over self.nodes."""
        if self._adjacency_matrix is None:
            self._build_adjacency_matrix()
        return self._adjacency_matrix

    @property
    def request_matrix(self) -> np.ndarray:
        """Get request matrix [P][R]."""
        if self._request_matrix is None:
            self._build_request_matrix()
        return self._request_matrix

    @property
    def allocation_matrix(self) -> np.ndarray:
        """Get allocation matrix [R][P]."""
        if self._allocation_matrix is None:
            self._build_allocation_matrix()
        return self._allocation_matrix

    @property
    def wait_for_matrix(self) -> np.ndarray:
        """
        Get wait-for matrix [P][P].
        Computed as: WaitFor = Request @ Allocation
        Entry [i][j] counts the resources P_i requests that P_j holds.
        """
        if self._wait_for_matrix is None:
            self._wait_for_matrix = self.request_matrix @ self.allocation_matrix
        return self._wait_for_matrix

    def _build_adjacency_matrix(self) -> None:
        """Build adjacency matrix from the edge list."""
        index = {name: i for i, name in enumerate(self.nodes)}
        size = len(index)
        self._adjacency_matrix = np.zeros((size, size), dtype=int)
        for edge in self.edges:
            if edge.from_node in index and edge.to_node in index:
                self._adjacency_matrix[index[edge.from_node]][index[edge.to_node]] += 1

    def _build_request_matrix(self) -> None:
        """Build request matrix from request edges."""
        p_index = {name: i for i, name in enumerate(self.process_names)}
        r_index = {name: i for i, name in enumerate(self.resource_names)}
        self._request_matrix = np.zeros((self.num_processes, self.num_resources), dtype=int)
        for edge in self.edges:
            if edge.edge_type != EdgeType.REQUEST:
                continue
            if edge.from_node in p_index and edge.to_node in r_index:
                self._request_matrix[p_index[edge.from_node]][r_index[edge.to_node]] = 1

    def _build_allocation_matrix(self) -> None:
        """Build allocation matrix from allocation edges."""
        p_index = {name: i for i, name in enumerate(self.process_names)}
        r_index = {name: i for i, name in enumerate(self.resource_names)}
        self._allocation_matrix = np.zeros((self.num_resources, self.num_processes), dtype=int)
        for edge in self.edges:
            if edge.edge_type != EdgeType.ALLOCATION:
                continue
            if edge.from_node in r_index and edge.to_node in p_index:
                self._allocation_matrix[r_index[edge.from_node]][p_index[edge.to_node]] = 1

    def refresh_matrices(self) -> None:
        """Drop cached matrices after a mutation."""
        self._adjacency_matrix = None
        self._request_matrix = None
        self._allocation_matrix = None
        self._wait_for_matrix = None

    def display(self) -> str:
        """
        Generate readable string representation of the graph.

        Returns:
            Formatted string showing nodes, edges, adjacency and wait-for matrices
        """
        output = []
        output.append("\n" + "="*60)
        output.append("RESOURCE ALLOCATION GRAPH")
        output.append("="*60)

        output.append("\nProcesses: " + (", ".join(self.process_names) or "(none)"))
        output.append("Resources: " + (", ".join(self.resource_names) or "(none)"))

        output.append("\nEdges:")
        if not self.edges:
            output.append("  No edges")
        for edge in self.edges:
            output.append(f"  {edge}")

        if self.nodes:
            output.append("\nAdjacency Matrix (row -> column):")
            output.append("       " + " ".join([f"{name:>4}" for name in self.nodes]))
            for i, name in enumerate(self.nodes):
                row = f"  {name:>4} "
                row += " ".join([f"{self.adjacency_matrix[i][j]:4}" for j in range(len(self.nodes))])
                output.append(row)

        if self.num_processes:
            output.append("\nWait-For Matrix (Request x Allocation):")
            output.append("       " + " ".join([f"{name:>4}" for name in self.process_names]))
            for i, name in enumerate(self.process_names):
                row = f"  {name:>4} "
                row += " ".join([f"{self.wait_for_matrix[i][j]:4}" for j in range(self.num_processes)])
                output.append(row)

        output.append("\n" + "="*60)
        return "\n".join(output)

