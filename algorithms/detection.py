"""
Deadlock Detection Algorithm for the Resource Allocation Graph Simulator.

Implements cycle detection on a single-instance resource allocation graph.
A deadlock is a directed cycle that passes through two or more distinct
processes; every such cycle is reported once, in canonical form, together
with the edges that make it up.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from models.edge import edge_key
from models.node import is_process


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome of one detection pass.

    Attributes:
        deadlocked: True if at least one cycle involves two or more processes
        cycles: Canonical closed cycles (first node repeated at the end),
            in the order they were first discovered
        cycles_edges: Parallel to cycles; for each cycle, one edge id per
            consecutive node pair, or the "from->to" key when the edge
            has no id
    """
    deadlocked: bool = False
    cycles: List[List[str]] = field(default_factory=list)
    cycles_edges: List[List] = field(default_factory=list)


def detect_deadlock(edges, nodes) -> DetectionResult:
    """
    Detect deadlock cycles in a resource allocation graph.

    Algorithm (DFS with back-edge detection):
    1. Build adjacency lists and a (from, to) -> [edges] map in edge order
    2. Start a DFS from every unvisited node, in the order of `nodes`
    3. A neighbour already on the DFS path closes a cycle: the path slice
       from that neighbour onwards, re-closed with the neighbour
    4. Keep the cycle only if it visits two or more distinct processes,
       canonicalize it and drop it if already seen
    5. Map each kept cycle back to edge ids (first inserted edge per pair)

    The traversal uses an explicit stack so that deep graphs do not hit
    the interpreter's recursion limit. Visit order and cycle discovery
    order are the same as for the recursive formulation.

    Time Complexity: O(V + E) traversal plus O(C x L^2) canonicalization
    for C cycles of length L

    Args:
        edges: Sequence of Edge objects or mappings with 'from', 'to' and
            optional 'id'. Entries without endpoints are skipped.
        nodes: Sequence of node names giving the DFS seed order

    Returns:
        DetectionResult (never raises on malformed input)
    """
    adjacency, edge_map = _build_adjacency(_as_sequence(edges))
    registry = _CycleRegistry(edge_map)

    visited = set()
    # node -> index in the active path; doubles as the on-stack set
    on_stack: Dict[str, int] = {}
    path: List[str] = []

    for seed in _as_sequence(nodes):
        start = str(seed)
        if start in visited:
            continue

        visited.add(start)
        on_stack[start] = len(path)
        path.append(start)
        frames = [[start, 0]]

        while frames:
            frame = frames[-1]
            node, position = frame
            neighbours = adjacency.get(node, ())

            if position >= len(neighbours):
                frames.pop()
                path.pop()
                del on_stack[node]
                continue

            frame[1] = position + 1
            neighbour = neighbours[position]

            if neighbour not in visited:
                visited.add(neighbour)
                on_stack[neighbour] = len(path)
                path.append(neighbour)
                frames.append([neighbour, 0])
            elif neighbour in on_stack:
                raw_cycle = path[on_stack[neighbour]:] + [neighbour]
                registry.add_cycle_if_valid(raw_cycle)

    return DetectionResult(
        deadlocked=len(registry.cycles) > 0,
        cycles=registry.cycles,
        cycles_edges=registry.cycles_edges
    )


def canonical_cycle(closed_cycle: List) -> List[str]:
    """
    Rotate a closed cycle to its canonical form.

    The canonical form is the rotation of the cycle (closing node dropped)
    whose comma-joined text is lexicographically smallest, closed again by
    repeating its first node.

    Args:
        closed_cycle: Node sequence with first == last

    Returns:
        Canonical closed cycle
    """
    core = [str(n) for n in closed_cycle[:-1]]
    if not core:
        return [str(n) for n in closed_cycle]

    best_key = None
    best = core
    for i in range(len(core)):
        rotation = core[i:] + core[:i]
        key = ",".join(rotation)
        if best_key is None or key < best_key:
            best_key = key
            best = rotation

    return best + [best[0]]


def should_run_detection(current_step: int, detect_interval: int) -> bool:
    """
    Determine if detection should run at current simulation step.

    Args:
        current_step: Current simulation step number
        detect_interval: Steps between detection checks

    Returns:
        True if detection should run
    """
    if detect_interval <= 1:
        return True
    return current_step % detect_interval == 0


def format_cycle(cycle: Iterable) -> str:
    """Render a cycle as "P1 -> R1 -> P2 -> R2 -> P1"."""
    return " -> ".join(str(n) for n in cycle)


def describe_result(result: DetectionResult, has_allocations: bool) -> str:
    """
    Build the deadlock alert text for a detection result.

    A "no deadlock" message is only meaningful once some resource has been
    allocated; before that an empty string is returned.

    Args:
        result: Detection result to describe
        has_allocations: Whether the graph has any allocation edge

    Returns:
        Alert text, possibly empty
    """
    if result.deadlocked:
        lines = ["Deadlock detected"]
        for i, cycle in enumerate(result.cycles):
            lines.append(f"  Cycle {i + 1}: {format_cycle(cycle)}")
        lines.append(
            "  Processes are waiting on each other. "
            "Break the cycle by deleting or reassigning edges."
        )
        return "\n".join(lines)

    if not has_allocations:
        return ""

    return (
        "No deadlock detected\n"
        "  There are no cycles involving two or more processes."
    )


class _CycleRegistry:
    """Accumulates distinct deadlock cycles and their edge identifiers."""

    def __init__(self, edge_map: Dict[Tuple[str, str], List]):
        self.edge_map = edge_map
        self.cycles: List[List[str]] = []
        self.cycles_edges: List[List] = []
        self._seen = set()

    def add_cycle_if_valid(self, raw_cycle: List[str]) -> bool:
        """
        Register a raw closed cycle found by the DFS.

        Returns:
            True if the cycle was new and involves two or more processes
        """
        if len(raw_cycle) < 2:
            return False

        core = raw_cycle[:-1]
        processes = {n for n in core if is_process(n)}
        if len(processes) <= 1:
            # Single-process P -> R -> P loops are not a deadlock
            return False

        cycle = canonical_cycle(raw_cycle)
        identity = tuple(cycle)
        if identity in self._seen:
            return False

        self._seen.add(identity)
        self.cycles.append(cycle)
        self.cycles_edges.append(self._edge_refs(cycle))
        return True

    def _edge_refs(self, cycle: List[str]) -> List:
        """Map consecutive node pairs of a cycle to edge ids or keys."""
        refs = []
        for a, b in zip(cycle, cycle[1:]):
            matches = self.edge_map.get((a, b))
            if matches:
                edge_id = matches[0]
                refs.append(edge_id if edge_id is not None else edge_key(a, b))
            else:
                refs.append(edge_key(a, b))
        return refs


def _build_adjacency(edges: Sequence) -> Tuple[Dict[str, List[str]], Dict[Tuple[str, str], List]]:
    """
    Build adjacency lists and the (from, to) edge map in one pass.

    Returns:
        Tuple of (adjacency, edge_map); edge_map values list the ids
        (None when absent) of every edge joining the pair, in input order
    """
    adjacency: Dict[str, List[str]] = {}
    edge_map: Dict[Tuple[str, str], List] = {}

    for entry in edges:
        fields = _edge_fields(entry)
        if fields is None:
            continue
        edge_id, from_node, to_node = fields

        adjacency.setdefault(from_node, []).append(to_node)
        edge_map.setdefault((from_node, to_node), []).append(edge_id)

    return adjacency, edge_map


def _edge_fields(entry) -> Optional[Tuple]:
    """Extract (id, from, to) from an Edge or a mapping, or None if malformed."""
    if entry is None:
        return None

    if isinstance(entry, Mapping):
        if entry.get('from') is None or entry.get('to') is None:
            return None
        return entry.get('id'), str(entry['from']), str(entry['to'])

    from_node = getattr(entry, 'from_node', None)
    to_node = getattr(entry, 'to_node', None)
    if from_node is None or to_node is None:
        return None
    return getattr(entry, 'id', None), str(from_node), str(to_node)


def _as_sequence(value) -> Sequence:
    """Treat anything that is not a list-like sequence as empty."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return ()
    return value
