"""
Logger utility for the Resource Allocation Graph Simulator.

Provides step-by-step logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime

from models.edge import Edge, EdgeType


class SimulatorLogger:
    """
    Logger for graph mutations, detection results and recovery actions.

    Format: "Step X: P1 requests R2 - CREATED (e3)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose output
            log_file: Optional file path for logging
        """
        self.verbose = verbose
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Simulation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        print(formatted)

        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_step(self, step: int, message: str) -> None:
        """Log a simulation step message."""
        self.log(f"Step {step}: {message}")

    def log_edge(self, step: int, edge: Edge, created: bool) -> None:
        """
        Log an edge creation attempt.

        Args:
            step: Current simulation step
            edge: Edge that was created or rejected
            created: False if the edge duplicated an existing one
        """
        verb = "requests" if edge.edge_type == EdgeType.REQUEST else "is allocated to"
        if created:
            message = f"{edge.from_node} {verb} {edge.to_node} - CREATED ({edge.id})"
        else:
            message = f"{edge.from_node} {verb} {edge.to_node} - REJECTED (duplicate edge)"
        self.log_step(step, message)

    def log_deadlock(self, step: int, cycles: List[List[str]]) -> None:
        """
        Log deadlock detection.

        Args:
            step: Current simulation step
            cycles: Canonical closed cycles
        """
        self.log_step(step, f"DEADLOCK DETECTED - {len(cycles)} cycle(s)")
        for i, cycle in enumerate(cycles):
            self.log(f"  Cycle {i + 1}: {' -> '.join(cycle)}")

    def log_resolution(self, step: int, message: str) -> None:
        """
        Log recovery action.

        Args:
            step: Current simulation step
            message: Description of the deleted edge
        """
        self.log_step(step, f"RECOVERY - {message}")

    def log_graph_state(self, step: int, state_str: str) -> None:
        """
        Log graph state snapshot.

        Args:
            step: Current simulation step
            state_str: Formatted graph state
        """
        if self.verbose:
            self.log_step(step, f"Graph State:\n{state_str}")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
