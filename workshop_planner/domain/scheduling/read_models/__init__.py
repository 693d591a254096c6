"""Read models derived from a day snapshot."""

from .utilization_report import DayKPIs, TechnicianLane, UtilizationReport, UtilizationReporter

__all__ = ["DayKPIs", "TechnicianLane", "UtilizationReport", "UtilizationReporter"]
