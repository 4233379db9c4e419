"""Public package exports for batch_groups."""

from batch_groups.models import Group, Partition, Settings
from batch_groups.participants import resolve
from batch_groups.partition import partition
from batch_groups.reassign import ReassignmentController
from batch_groups.reveal import RevealScheduler
from batch_groups.session import GroupingSession

__all__ = [
    "Group",
    "GroupingSession",
    "Partition",
    "ReassignmentController",
    "RevealScheduler",
    "Settings",
    "partition",
    "resolve",
]
