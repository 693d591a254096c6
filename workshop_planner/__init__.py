"""Workshop day planner: technician lanes, AW capacity and conflict-free placement."""

__version__ = "0.1.0"
