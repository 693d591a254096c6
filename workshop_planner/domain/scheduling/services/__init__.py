"""Domain services for day-view scheduling."""

from .assignment_scheduler import AssignmentScheduler
from .capacity_calculator import CapacityCalculator
from .conflict_detector import ConflictDetector
from .placement_advisor import PlacementAdvisor, PlacementFinding, PlacementReview

__all__ = [
    "AssignmentScheduler",
    "CapacityCalculator",
    "ConflictDetector",
    "PlacementAdvisor",
    "PlacementFinding",
    "PlacementReview",
]
