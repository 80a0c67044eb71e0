#!/usr/bin/env python3
"""
Resource Allocation Graph Simulator
Main entry point for the simulation system.

Educational tool for demonstrating deadlock detection on single-instance
resource allocation graphs.
"""

import argparse
import sys
from typing import Dict, List, Optional, Tuple

from models.edge import Edge, EdgeType
from models.graph import ResourceAllocationGraph
from utils.scenario_loader import load_scenario, ScenarioLoadError
from utils.logger import SimulatorLogger
from algorithms.detection import (
    describe_result,
    detect_deadlock,
    format_cycle,
    should_run_detection,
)
from algorithms.recovery import recover_from_deadlock, resolve_deadlock
from analysis.events import EventLog, SimulationEvent, EventType


POLICIES = ['detection_only', 'detection_with_recovery']


def run_simulation(
    policy: str,
    scenario_path: str,
    detect_interval: int = 1,
    verbose: bool = False,
    log_file: Optional[str] = None
) -> Tuple[EventLog, str]:
    """
    Run the deadlock simulation with specified policy.

    Step Ordering (for deterministic execution):
    1. Apply the step's scripted events in file order
    2. Run detection (depending on detect_interval)
    3. If deadlock: DETECTION_ONLY halts, DETECTION_WITH_RECOVERY deletes
       edges of the first cycle until no deadlock remains

    Args:
        policy: One of 'detection_only', 'detection_with_recovery'
        scenario_path: Path to scenario JSON file
        detect_interval: Steps between deadlock detection
        verbose: Enable verbose logging
        log_file: Optional file to mirror the log into

    Returns:
        Tuple of (EventLog containing all simulation events, stop reason)
    """
    if policy not in POLICIES:
        raise ValueError(f"Unknown policy: {policy}")

    logger = SimulatorLogger(verbose=verbose, log_file=log_file)
    event_log = EventLog()

    try:
        graph, events_by_step = load_scenario(scenario_path)
    except ScenarioLoadError as e:
        logger.log(f"Failed to load scenario: {e}", "error")
        logger.close()
        return event_log, f"Scenario load failed: {e}"

    logger.log(f"\n{'='*60}")
    logger.log(f"SIMULATION START: {policy.upper()}")
    logger.log(f"Scenario: {scenario_path}")
    logger.log(f"{'='*60}\n")

    logger.log("Initial Graph:")
    logger.log(graph.display())

    max_step = max(events_by_step.keys()) if events_by_step else 0
    stop_reason = f"Completed {max_step + 1} steps"

    for step in range(max_step + 1):
        logger.log(f"\n{'-'*60}")
        logger.log(f"Step {step}")
        logger.log(f"{'-'*60}")

        # Step 1: Apply scripted events
        for event in events_by_step.get(step, []):
            _apply_event(step, event, graph, logger, event_log)

        # Step 2: Run deadlock detection (depending on detect_interval)
        if not should_run_detection(step, detect_interval):
            continue

        edges, nodes = graph.snapshot()
        result = detect_deadlock(edges, nodes)

        if result.deadlocked:
            logger.log_deadlock(step, result.cycles)
            for cycle, refs in zip(result.cycles, result.cycles_edges):
                logger.log(f"  {format_cycle(cycle)} via edges {', '.join(str(r) for r in refs)}", "debug")

            event_log.add(SimulationEvent(
                step=step,
                event_type=EventType.DEADLOCK,
                message="; ".join(format_cycle(c) for c in result.cycles)
            ))

            # For DETECTION_ONLY: halt simulation
            if policy == 'detection_only':
                logger.log("\nPolicy: DETECTION_ONLY - Halting simulation")
                stop_reason = f"Halted on deadlock at step {step}"
                break

            # For DETECTION_WITH_RECOVERY: break cycles by deleting edges
            logger.log("\nPolicy: DETECTION_WITH_RECOVERY - Initiating recovery")
            success, actions = recover_from_deadlock(graph)
            for action in actions:
                logger.log(f"  {action}")
                if action.startswith("RECOVERY:"):
                    event_log.add(SimulationEvent(
                        step=step,
                        event_type=EventType.RECOVERY,
                        message=action
                    ))

            if not success:
                logger.log("  Recovery failed - halting simulation", "error")
                stop_reason = f"Recovery failed at step {step}"
                break
        else:
            logger.log("  Deadlock check: No deadlock detected", "debug")

        logger.log_graph_state(step, graph.display())

    logger.log(f"\n{'='*60}")
    logger.log("SIMULATION COMPLETE")
    logger.log(f"{'='*60}\n")

    edges, nodes = graph.snapshot()
    alert = describe_result(detect_deadlock(edges, nodes), graph.has_allocation_edges())
    if alert:
        logger.log(alert)

    _display_statistics(graph, event_log, logger, stop_reason)

    logger.close()
    return event_log, stop_reason


def _apply_event(
    step: int,
    event: Dict,
    graph: ResourceAllocationGraph,
    logger: SimulatorLogger,
    event_log: EventLog
) -> None:
    """
    Apply one scripted event to the graph.

    Args:
        step: Current simulation step
        event: Validated event dictionary
        graph: Graph to mutate
        logger: Logger instance
        event_log: Event log
    """
    event_type = event['type']

    if event_type == 'add_process':
        name = graph.add_process()
        logger.log_step(step, f"{name} added")
        event_log.add(SimulationEvent(step=step, event_type=EventType.PROCESS_ADDED, node=name))

    elif event_type == 'add_resource':
        name = graph.add_resource()
        logger.log_step(step, f"{name} added")
        event_log.add(SimulationEvent(step=step, event_type=EventType.RESOURCE_ADDED, node=name))

    elif event_type in ('request', 'allocation'):
        process, resource = event['process'], event['resource']
        try:
            edge = graph.create_edge(process, resource, event_type)
        except ValueError as e:
            logger.log(f"Step {step}: cannot create {event_type} edge - {e}", "error")
            return

        if edge is None:
            rejected = _describe_edge(process, resource, EdgeType(event_type))
            logger.log_edge(step, rejected, created=False)
            event_log.add(SimulationEvent(
                step=step,
                event_type=EventType.EDGE_REJECTED,
                message=str(rejected)
            ))
            return

        logger.log_edge(step, edge, created=True)
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.EDGE_CREATED,
            edge_id=edge.id,
            message=str(edge)
        ))

    elif event_type == 'delete_edge':
        edge_id = event['id']
        if not graph.delete_edge(edge_id):
            logger.log(f"Step {step}: edge {edge_id} not found", "error")
            return
        logger.log_step(step, f"edge {edge_id} deleted")
        event_log.add(SimulationEvent(step=step, event_type=EventType.EDGE_DELETED, edge_id=str(edge_id)))

    elif event_type == 'reset':
        graph.reset()
        logger.log_step(step, "graph reset")
        event_log.add(SimulationEvent(step=step, event_type=EventType.RESET))

    elif event_type == 'resolve':
        deleted, message = resolve_deadlock(graph)
        if not deleted:
            logger.log_step(step, f"resolve requested - {message}")
            return
        logger.log_resolution(step, message)
        event_log.add(SimulationEvent(step=step, event_type=EventType.RECOVERY, message=message))


def _describe_edge(process: str, resource: str, edge_type: EdgeType) -> Edge:
    """Build an id-less edge for logging a rejected creation."""
    if edge_type == EdgeType.REQUEST:
        return Edge(process, resource, edge_type)
    return Edge(resource, process, edge_type)


def _display_statistics(
    graph: ResourceAllocationGraph,
    event_log: EventLog,
    logger: SimulatorLogger,
    stop_reason: str
) -> None:
    """Display final simulation statistics."""
    logger.log("\nSimulation Statistics:")
    logger.log(f"  Stop Reason: {stop_reason}")
    logger.log(f"  Processes: {graph.num_processes}")
    logger.log(f"  Resources: {graph.num_resources}")
    logger.log(f"  Edges Remaining: {len(graph.edges)}")

    created = len(event_log.get_events_by_type(EventType.EDGE_CREATED))
    rejected = len(event_log.get_events_by_type(EventType.EDGE_REJECTED))
    deadlocks = len(event_log.get_events_by_type(EventType.DEADLOCK))
    recoveries = len(event_log.get_events_by_type(EventType.RECOVERY))

    logger.log(f"\n  Edges Created: {created}")
    logger.log(f"  Duplicate Edges Rejected: {rejected}")
    logger.log(f"  Deadlocks Detected: {deadlocks}")
    logger.log(f"  Edges Deleted by Recovery: {recoveries}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description='Resource Allocation Graph Simulator'
    )
    parser.add_argument(
        '--policy',
        choices=POLICIES,
        required=True,
        help='Deadlock handling policy to use'
    )
    parser.add_argument(
        '--scenario',
        type=str,
        required=True,
        help='Path to scenario JSON file'
    )
    parser.add_argument(
        '--detect-interval',
        type=int,
        default=1,
        help='Steps between deadlock detection checks (default: 1)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )

    args = parser.parse_args(argv)

    if args.detect_interval < 1:
        parser.error('--detect-interval must be at least 1')

    _, stop_reason = run_simulation(
        args.policy,
        args.scenario,
        args.detect_interval,
        args.verbose,
        args.log_file
    )
    if stop_reason.startswith("Scenario load failed"):
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
