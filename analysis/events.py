"""
Event Model for the Resource Allocation Graph Simulator.

Defines event types for tracking graph mutations, detections and recoveries.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EventType(Enum):
    """Types of events in the simulation."""
    PROCESS_ADDED = "process_added"
    RESOURCE_ADDED = "resource_added"
    EDGE_CREATED = "edge_created"
    EDGE_REJECTED = "edge_rejected"
    EDGE_DELETED = "edge_deleted"
    RESET = "reset"
    DEADLOCK = "deadlock"
    RECOVERY = "recovery"


@dataclass
class SimulationEvent:
    """
    Represents a single event in the simulation.

    Attributes:
        step: Simulation step when event occurred
        event_type: Type of event
        node: Node involved in event (if applicable)
        edge_id: Edge involved in event (if applicable)
        message: Human-readable description
    """
    step: int
    event_type: EventType
    node: Optional[str] = None
    edge_id: Optional[str] = None
    message: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"Step {self.step}"

        if self.event_type == EventType.PROCESS_ADDED:
            return f"{base}: process {self.node} added"
        elif self.event_type == EventType.RESOURCE_ADDED:
            return f"{base}: resource {self.node} added"
        elif self.event_type == EventType.EDGE_CREATED:
            return f"{base}: edge {self.edge_id} created ({self.message})"
        elif self.event_type == EventType.EDGE_REJECTED:
            return f"{base}: edge rejected ({self.message})"
        elif self.event_type == EventType.EDGE_DELETED:
            return f"{base}: edge {self.edge_id} deleted"
        elif self.event_type == EventType.RESET:
            return f"{base}: graph reset"
        elif self.event_type == EventType.DEADLOCK:
            return f"{base} - DEADLOCK DETECTED ({self.message})"
        elif self.event_type == EventType.RECOVERY:
            return f"{base} - RECOVERY ({self.message})"
        else:
            return f"{base} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: SimulationEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_step(self, step: int) -> list:
        """Get all events from a specific step."""
        return [e for e in self.events if e.step == step]

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
