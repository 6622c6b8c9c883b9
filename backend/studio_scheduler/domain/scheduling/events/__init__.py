"""
Domain Events Module

Events published after a job's schedule structure changes.
"""

from .structure_events import StructureChanged, TaskReclassified, TasksSynchronized

__all__ = [
    "StructureChanged",
    "TaskReclassified",
    "TasksSynchronized",
]
