"""
Scheduling Domain

Technician lanes, AW capacity and interactive placement for a single
workshop day.
"""
