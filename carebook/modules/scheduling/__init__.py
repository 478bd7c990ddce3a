"""
Scheduling core

Pure functions over in-memory snapshots, no I/O:
- Slot generation from weekly blocks (slots.py)
- Removal of booked slots (availability.py)
- Conflict detection for a proposed interval (conflicts.py)

service.py wires them to the repositories for the HTTP layer.
"""
from carebook.modules.scheduling.availability import active_appointments, filter_available
from carebook.modules.scheduling.conflicts import has_conflict
from carebook.modules.scheduling.intervals import overlaps
from carebook.modules.scheduling.slots import find_schedule_issues, generate_slots

__all__ = [
    "active_appointments",
    "filter_available",
    "find_schedule_issues",
    "generate_slots",
    "has_conflict",
    "overlaps",
]
