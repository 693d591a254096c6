"""Infrastructure adapters for the day planner."""
