"""
Algorithms package for the Resource Allocation Graph Simulator.
Contains deadlock cycle detection and edge-deletion recovery.
"""
