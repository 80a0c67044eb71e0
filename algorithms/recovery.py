"""
Deadlock Recovery Algorithm for the Resource Allocation Graph Simulator.

Breaks deadlock cycles by deleting one edge of the first reported cycle.
"""

from typing import List, Optional, Sequence, Tuple

from models.edge import Edge, EdgeType, parse_edge_key
from models.graph import ResourceAllocationGraph
from algorithms.detection import DetectionResult, detect_deadlock, format_cycle


def select_edge_to_break(
    result: DetectionResult,
    edges: Sequence[Edge],
    use_edge_ids: bool = True
) -> Optional[Edge]:
    """
    Select the edge to delete in order to break the first deadlock cycle.

    Selection order:
    1. First identifier in cycles_edges[0] that is a real edge id
    2. Otherwise the first identifier, parsed as a "from->to" key and
       matched against the edges' endpoints
    3. Without edge identifiers (or with an unparseable key), walk the
       node pairs of cycles[0]: a request edge first, then an allocation
       edge, then any edge joining the pair

    Args:
        result: Detection result for the current graph
        edges: Current edges of the graph
        use_edge_ids: Set False to use only the node-pair walk

    Returns:
        Edge to delete, or None if no edge can be identified
    """
    if not result.deadlocked:
        return None

    if use_edge_ids and result.cycles_edges:
        cycle_refs = result.cycles_edges[0]
        by_id = {str(e.id): e for e in reversed(edges) if e.id is not None}

        for ref in cycle_refs:
            if str(ref) in by_id:
                return by_id[str(ref)]

        if cycle_refs:
            endpoints = parse_edge_key(cycle_refs[0])
            if endpoints is not None:
                # A well-formed key that matches nothing means no action
                return next((e for e in edges if e.matches(*endpoints)), None)

    if not result.cycles:
        return None

    cycle = result.cycles[0]
    pairs = list(zip(cycle, cycle[1:]))

    for edge_type in (EdgeType.REQUEST, EdgeType.ALLOCATION, None):
        for from_node, to_node in pairs:
            for edge in edges:
                if not edge.matches(from_node, to_node):
                    continue
                if edge_type is None or edge.edge_type == edge_type:
                    return edge

    return None


def resolve_deadlock(
    graph: ResourceAllocationGraph,
    use_edge_ids: bool = True
) -> Tuple[bool, str]:
    """
    Detect deadlock and delete one edge of the first cycle.

    Args:
        graph: Graph to resolve (mutated in place)
        use_edge_ids: Set False to select by node pairs only

    Returns:
        Tuple of (edge_deleted, message)
    """
    edges, nodes = graph.snapshot()
    result = detect_deadlock(edges, nodes)

    if not result.deadlocked:
        return False, "No deadlock to resolve"

    edge = select_edge_to_break(result, edges, use_edge_ids)
    if edge is None:
        return False, f"No removable edge found in cycle {format_cycle(result.cycles[0])}"

    if not graph.delete_edge(edge.id):
        return False, f"Edge {edge} could not be deleted"

    return True, f"Deleted edge {edge} to break cycle {format_cycle(result.cycles[0])}"


def recover_from_deadlock(
    graph: ResourceAllocationGraph,
    max_rounds: Optional[int] = None
) -> Tuple[bool, List[str]]:
    """
    Delete edges until the graph is free of deadlock.

    Each round removes one edge of the first reported cycle and runs
    detection again. Every deletion removes at least one edge, so the
    number of rounds is bounded by the edge count.

    Args:
        graph: Graph to recover (mutated in place)
        max_rounds: Optional cap on deletions

    Returns:
        Tuple of (success, list of action messages)
    """
    actions = []
    edges, nodes = graph.snapshot()

    if not detect_deadlock(edges, nodes).deadlocked:
        return False, ["No deadlock to recover from"]

    rounds = len(edges) if max_rounds is None else max_rounds

    for _ in range(rounds):
        deleted, message = resolve_deadlock(graph)
        if not deleted:
            actions.append(f"FAILED: {message}")
            return False, actions

        actions.append(f"RECOVERY: {message}")

        edges, nodes = graph.snapshot()
        if not detect_deadlock(edges, nodes).deadlocked:
            actions.append("Deadlock resolved - no cycles involving two or more processes remain")
            return True, actions

    actions.append(f"FAILED: deadlock persists after {rounds} deletions")
    return False, actions
