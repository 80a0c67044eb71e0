"""
Deadlock Recovery Tests

Tests selection and deletion of the edge that breaks a deadlock cycle.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.edge import Edge, EdgeType
from models.graph import ResourceAllocationGraph
from algorithms.detection import DetectionResult, detect_deadlock
from algorithms.recovery import (
    recover_from_deadlock,
    resolve_deadlock,
    select_edge_to_break,
)


CYCLE = ['P1', 'R1', 'P2', 'R2', 'P1']


def _build_graph(num_processes, num_resources, edges):
    graph = ResourceAllocationGraph()
    for _ in range(num_processes):
        graph.add_process()
    for _ in range(num_resources):
        graph.add_resource()
    for process, resource, edge_type in edges:
        graph.create_edge(process, resource, edge_type)
    return graph


def _deadlocked_graph():
    return _build_graph(2, 2, [
        ("P1", "R1", "request"),
        ("P2", "R1", "allocation"),
        ("P2", "R2", "request"),
        ("P1", "R2", "allocation"),
    ])


def test_resolve_deletes_first_cycle_edge():
    """Resolution removes the first id listed for the first cycle."""
    print("\n" + "="*60)
    print("TEST: Resolve by edge id")
    print("="*60)

    graph = _deadlocked_graph()
    deleted, message = resolve_deadlock(graph)
    print(f"  {message}")

    assert deleted
    assert graph.get_edge("e1") is None
    assert [e.id for e in graph.edges] == ["e2", "e3", "e4"]

    edges, nodes = graph.snapshot()
    assert not detect_deadlock(edges, nodes).deadlocked
    print("  ✓ Deadlock broken by deleting e1")


def test_select_by_fallback_key():
    """Without ids, the first "from->to" key is matched on endpoints."""
    edges = [
        Edge("P1", "R1", EdgeType.REQUEST),
        Edge("R1", "P2", EdgeType.ALLOCATION),
        Edge("P2", "R2", EdgeType.REQUEST),
        Edge("R2", "P1", EdgeType.ALLOCATION),
    ]
    result = detect_deadlock(edges, ["P1", "P2", "R1", "R2"])
    assert result.cycles_edges[0][0] == "P1->R1"

    assert select_edge_to_break(result, edges) is edges[0]


def test_later_real_id_preferred_over_leading_key():
    """Any real id in the cycle's list beats a leading "from->to" key."""
    graph = _deadlocked_graph()
    result = DetectionResult(
        deadlocked=True,
        cycles=[CYCLE],
        cycles_edges=[["P1->R1", "stale-id", "e3", "e4"]]
    )

    edge = select_edge_to_break(result, graph.edges)
    assert edge.id == "e3"

    # Without any real id the leading key decides
    result = DetectionResult(deadlocked=True, cycles=[CYCLE], cycles_edges=[["R1->P2", "stale-id"]])
    assert select_edge_to_break(result, graph.edges).id == "e2"


def test_unmatched_key_takes_no_action():
    """A well-formed key that matches no edge leaves the deadlock alone."""
    graph = _deadlocked_graph()
    result = DetectionResult(deadlocked=True, cycles=[CYCLE], cycles_edges=[["X1->Y1"]])

    assert select_edge_to_break(result, graph.edges) is None


def test_unparseable_ref_prefers_request_edge():
    """An identifier that is neither an id nor a key falls back to node pairs."""
    graph = _deadlocked_graph()
    # Cycle listed from an allocation edge: R1 -> P2 comes before P2 -> R2
    cycle = ['R1', 'P2', 'R2', 'P1', 'R1']
    result = DetectionResult(deadlocked=True, cycles=[cycle], cycles_edges=[["stale-id"]])

    edge = select_edge_to_break(result, graph.edges)
    assert edge.id == "e3"
    assert edge.edge_type == EdgeType.REQUEST


def test_legacy_mode_without_edge_ids():
    """Node-pair walk: request edges first, then allocation edges."""
    graph = _deadlocked_graph()
    cycle = ['R1', 'P2', 'R2', 'P1', 'R1']
    result = DetectionResult(deadlocked=True, cycles=[cycle], cycles_edges=[])
    assert select_edge_to_break(result, graph.edges).id == "e3"

    allocations_only = [e for e in graph.edges if e.edge_type == EdgeType.ALLOCATION]
    assert select_edge_to_break(result, allocations_only).id == "e2"

    full = detect_deadlock(*graph.snapshot())
    assert select_edge_to_break(full, graph.edges, use_edge_ids=False).id == "e1"


def test_nothing_to_resolve():
    """No deadlock means no action."""
    graph = _build_graph(2, 1, [("P1", "R1", "request"), ("P2", "R1", "allocation")])

    assert select_edge_to_break(detect_deadlock(*graph.snapshot()), graph.edges) is None

    deleted, message = resolve_deadlock(graph)
    assert not deleted
    assert message == "No deadlock to resolve"
    assert len(graph.edges) == 2


def test_recover_from_disjoint_deadlocks():
    """Recovery deletes one edge per cycle until no deadlock remains."""
    print("\n" + "="*60)
    print("TEST: Recovery from two deadlocks")
    print("="*60)

    graph = _build_graph(4, 4, [
        ("P1", "R1", "request"),
        ("P2", "R1", "allocation"),
        ("P2", "R2", "request"),
        ("P1", "R2", "allocation"),
        ("P3", "R3", "request"),
        ("P4", "R3", "allocation"),
        ("P4", "R4", "request"),
        ("P3", "R4", "allocation"),
    ])

    success, actions = recover_from_deadlock(graph)
    for action in actions:
        print(f"  {action}")

    assert success
    assert len([a for a in actions if a.startswith("RECOVERY:")]) == 2
    assert graph.get_edge("e1") is None
    assert graph.get_edge("e5") is None
    assert len(graph.edges) == 6
    print("  ✓ Both cycles broken")


def test_recover_without_deadlock():
    graph = _build_graph(1, 1, [("P1", "R1", "request"), ("P1", "R1", "allocation")])

    success, actions = recover_from_deadlock(graph)

    assert not success
    assert actions == ["No deadlock to recover from"]
    assert len(graph.edges) == 2


def test_recover_respects_round_limit():
    graph = _build_graph(4, 4, [
        ("P1", "R1", "request"),
        ("P2", "R1", "allocation"),
        ("P2", "R2", "request"),
        ("P1", "R2", "allocation"),
        ("P3", "R3", "request"),
        ("P4", "R3", "allocation"),
        ("P4", "R4", "request"),
        ("P3", "R4", "allocation"),
    ])

    success, actions = recover_from_deadlock(graph, max_rounds=1)

    assert not success
    assert actions[-1].startswith("FAILED")
    assert len(graph.edges) == 7
