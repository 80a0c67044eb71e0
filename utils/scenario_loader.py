"""
Scenario Loader for the Resource Allocation Graph Simulator.

Loads and validates JSON scenario files: an initial graph (processes,
resources, edges) plus scripted graph operations grouped by step.
"""

import json
from typing import Dict, List, Any, Tuple

from models.edge import Edge, EdgeType
from models.graph import ResourceAllocationGraph
from models.node import NodeKind, Node, classify


EDGE_EVENTS = ('request', 'allocation')
NODE_EVENTS = ('add_process', 'add_resource')
GRAPH_EVENTS = ('delete_edge', 'reset', 'resolve')


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


def load_scenario(file_path: str) -> Tuple[ResourceAllocationGraph, Dict[int, List[Dict]]]:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (ResourceAllocationGraph, events_by_step)
        - ResourceAllocationGraph: Initial graph with nodes and edges
        - events_by_step: Dict mapping step number to list of events,
          in file order

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    return build_scenario(data)


def build_scenario(data: Dict[str, Any]) -> Tuple[ResourceAllocationGraph, Dict[int, List[Dict]]]:
    """
    Build the initial graph and event schedule from parsed scenario data.

    Raises:
        ScenarioLoadError: If the scenario is invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")
    if 'processes' not in data:
        raise ScenarioLoadError("Scenario missing 'processes' field")
    if 'resources' not in data:
        raise ScenarioLoadError("Scenario missing 'resources' field")

    graph = ResourceAllocationGraph()

    for _ in range(_node_count(data['processes'], NodeKind.PROCESS)):
        graph.add_process()
    for _ in range(_node_count(data['resources'], NodeKind.RESOURCE)):
        graph.add_resource()

    for edge_data in _list_field(data, 'edges'):
        process, resource, edge_type = _edge_endpoints(edge_data, "initial edge")
        try:
            edge = graph.create_edge(process, resource, edge_type)
        except ValueError as e:
            raise ScenarioLoadError(f"Invalid initial edge {edge_data!r}: {e}")
        if edge is None:
            raise ScenarioLoadError(f"Duplicate initial edge {edge_data!r}")

    events_by_step = {}
    for event in _list_field(data, 'events'):
        event = _validate_event(event)
        step = event['step']
        if step not in events_by_step:
            events_by_step[step] = []
        events_by_step[step].append(event)

    return graph, events_by_step


def _list_field(data: Dict[str, Any], field: str) -> List:
    """Read an optional list field; absent means empty."""
    value = data.get(field, [])
    if not isinstance(value, list):
        raise ScenarioLoadError(f"Scenario field '{field}' must be a list, got {value!r}")
    return value


def _node_count(spec: Any, kind: NodeKind) -> int:
    """
    Read a node declaration: either a count or an explicit name list.

    Explicit names must follow the sequential naming of the graph
    ("P1", "P2", ... or "R1", "R2", ...).
    """
    if isinstance(spec, bool):
        raise ScenarioLoadError(f"Invalid {kind.value} declaration: {spec!r}")

    if isinstance(spec, int):
        if spec < 0:
            raise ScenarioLoadError(f"Negative {kind.value} count: {spec}")
        return spec

    if isinstance(spec, list):
        for i, name in enumerate(spec):
            expected = Node.process(i + 1) if kind == NodeKind.PROCESS else Node.resource(i + 1)
            if str(name) != expected.name:
                raise ScenarioLoadError(
                    f"{kind.value.capitalize()} #{i + 1} must be named {expected.name}, got {name!r}"
                )
        return len(spec)

    raise ScenarioLoadError(f"Invalid {kind.value} declaration: {spec!r}")


def _edge_endpoints(data: Dict, context: str) -> Tuple[str, str, EdgeType]:
    """
    Read (process, resource, type) from an edge description.

    Accepts either {"process", "resource", "type"} or the directed
    {"from", "to", "type"} form.

    Raises:
        ScenarioLoadError: If the description is incomplete or inconsistent
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError(f"{context}: expected an object, got {data!r}")

    try:
        edge_type = EdgeType(data.get('type', EdgeType.REQUEST.value))
    except ValueError:
        raise ScenarioLoadError(f"{context}: unknown edge type {data.get('type')!r}")

    if 'process' in data and 'resource' in data:
        return str(data['process']), str(data['resource']), edge_type

    if 'from' in data and 'to' in data:
        edge = Edge.from_dict(data)
        if edge.edge_type == EdgeType.REQUEST:
            process, resource = edge.from_node, edge.to_node
        else:
            process, resource = edge.to_node, edge.from_node
        if classify(process) != NodeKind.PROCESS or classify(resource) != NodeKind.RESOURCE:
            raise ScenarioLoadError(
                f"{context}: {edge.edge_type.value} edge {edge.from_node} -> {edge.to_node} "
                f"has the wrong direction"
            )
        return process, resource, edge.edge_type

    raise ScenarioLoadError(f"{context}: missing 'process'/'resource' (or 'from'/'to') fields")


def _validate_event(event: Dict) -> Dict:
    """
    Validate a scripted event.

    Args:
        event: Event dictionary

    Returns:
        The event; request and allocation events are copied with their
        endpoints normalised to 'process' and 'resource'

    Raises:
        ScenarioLoadError: If event is invalid
    """
    if not isinstance(event, dict):
        raise ScenarioLoadError(f"Event must be an object, got {event!r}")
    if 'step' not in event:
        raise ScenarioLoadError(f"Event missing 'step' field: {event!r}")
    step = event['step']
    if isinstance(step, bool) or not isinstance(step, int) or step < 0:
        raise ScenarioLoadError(f"Event step must be a non-negative integer: {event!r}")
    if 'type' not in event:
        raise ScenarioLoadError(f"Event missing 'type' field: {event!r}")

    event_type = event['type']

    if event_type in EDGE_EVENTS:
        process, resource, _ = _edge_endpoints(event, f"Step {step} {event_type} event")
        event = dict(event, process=process, resource=resource)

    elif event_type == 'delete_edge':
        if 'id' not in event:
            raise ScenarioLoadError(f"Step {event['step']}: delete_edge event missing 'id'")

    elif event_type in NODE_EVENTS or event_type in GRAPH_EVENTS:
        # No additional fields
        pass

    else:
        raise ScenarioLoadError(
            f"Step {event['step']}: unknown event type '{event_type}'"
        )

    return event


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return ''
    if not isinstance(data, dict):
        return ''
    return data.get('description', '')
