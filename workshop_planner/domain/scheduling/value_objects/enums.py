"""Domain enums for scheduling."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    NEW = "new"  # Waiting in the buffer, no lane yet
    SCHEDULED = "scheduled"  # Placed on a technician lane
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    WAITING_PARTS = "waiting_parts"
    DONE = "done"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_unassigned(self) -> bool:
        """Check if the appointment is waiting for placement."""
        return self == AppointmentStatus.NEW

    @property
    def is_closed(self) -> bool:
        """Check if the appointment no longer needs workshop time."""
        return self in {
            AppointmentStatus.DONE,
            AppointmentStatus.DELIVERED,
            AppointmentStatus.CANCELLED,
        }


class PriorityLevel(str, Enum):
    """Appointment priority levels."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class AssignmentStatus(str, Enum):
    """Schedule assignment status enumeration."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_live(self) -> bool:
        """Check if the assignment occupies its lane (everything but cancelled)."""
        return self != AssignmentStatus.CANCELLED

    @property
    def is_terminal(self) -> bool:
        """Check if assignment status is terminal."""
        return self in {AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED}

    def can_transition_to(self, target_status: "AssignmentStatus") -> bool:
        """Check if assignment can transition from current status to target status."""
        valid_transitions = {
            AssignmentStatus.SCHEDULED: {
                AssignmentStatus.IN_PROGRESS,
                AssignmentStatus.CANCELLED,
            },
            AssignmentStatus.IN_PROGRESS: {AssignmentStatus.COMPLETED},
            AssignmentStatus.COMPLETED: set(),  # Terminal state
            AssignmentStatus.CANCELLED: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class AbsenceType(str, Enum):
    """Technician absence types."""

    VACATION = "vacation"
    SICK = "sick"
    TRAINING = "training"
    OTHER = "other"


class AppointmentFlag(str, Enum):
    """Well-known appointment flags counted by the day view."""

    VEHICLE_ONSITE = "vehicle_onsite"
    PARTS_ORDERED = "parts_ordered"


class UtilizationLevel(str, Enum):
    """Utilization bands used to color lanes and KPIs."""

    NORMAL = "normal"
    HIGH = "high"
    OVERBOOKED = "overbooked"


class CapacityPolicy(str, Enum):
    """What to do when a placement pushes a technician over capacity."""

    WARN = "warn"
    BLOCK = "block"


class OverflowPolicy(str, Enum):
    """What to do when an appointment runs past closing time."""

    ALLOW = "allow"
    REJECT = "reject"


class FindingSeverity(str, Enum):
    """Severity of a placement advisory finding."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
