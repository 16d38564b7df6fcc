"""Hybrid route planner: waypoint routes with gaps filled by routing services."""

__version__ = "0.1.0"
