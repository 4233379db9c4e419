from __future__ import annotations

from batch_groups.errors import InvalidIndex, UnknownGroup
from batch_groups.models import Group, Partition


class ReassignmentController:
    """Edits a partition in place without adding, dropping or renumbering anything."""

    def __init__(self, partition: Partition) -> None:
        self.partition = partition

    def _group(self, group_id: int) -> Group:
        group = self.partition.group(group_id)
        if group is None:
            raise UnknownGroup(f"Unknown group id {group_id}.")
        return group

    @staticmethod
    def _check_index(group: Group, index: int, size: int) -> None:
        if index < 0 or index >= size:
            raise InvalidIndex(
                f"Index {index} is out of range for group {group.id} (size {size})."
            )

    def reorder_within_group(self, group_id: int, from_index: int, to_index: int) -> None:
        group = self._group(group_id)
        size = len(group.members)
        self._check_index(group, from_index, size)
        self._check_index(group, to_index, size)
        if from_index == to_index:
            return
        member = group.members.pop(from_index)
        group.members.insert(to_index, member)

    def move_between_groups(
        self,
        source_group_id: int,
        source_index: int,
        dest_group_id: int,
        dest_index: int,
    ) -> None:
        source = self._group(source_group_id)
        dest = self._group(dest_group_id)
        if source is dest:
            self.reorder_within_group(source_group_id, source_index, dest_index)
            return

        self._check_index(source, source_index, len(source.members))
        # Appending at len(dest) is allowed.
        if dest_index < 0 or dest_index > len(dest.members):
            raise InvalidIndex(
                f"Insert position {dest_index} is out of range for group {dest.id} "
                f"(size {len(dest.members)})."
            )
        member = source.members.pop(source_index)
        dest.members.insert(dest_index, member)
