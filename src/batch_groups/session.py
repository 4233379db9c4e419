from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from batch_groups.errors import EmptyInput, GroupingError, InvalidConfiguration, UnknownGroup
from batch_groups.io import format_partition_text, write_partition
from batch_groups.models import Partition, Settings
from batch_groups.participants import resolve
from batch_groups.partition import estimate_groups, partition
from batch_groups.reassign import ReassignmentController
from batch_groups.reveal import RevealScheduler, Timer

logger = logging.getLogger(__name__)

NOTICE_INVALID_GROUP_SIZE = "invalid_group_size"
NOTICE_INVALID_SETTINGS = "invalid_settings"
NOTICE_NO_PARTICIPANTS = "no_participants"
NOTICE_GENERATED = "generated"
NOTICE_INVALID_MOVE = "invalid_move"

SEVERITY_ERROR = "error"
SEVERITY_SUCCESS = "success"


@dataclass(frozen=True)
class Notification:
    name: str
    severity: str
    message: str
    count: int | None = None


class SettingsBackend(Protocol):
    def load(self) -> Settings | None: ...

    def save(self, settings: Settings) -> None: ...


def _log_notification(notification: Notification) -> None:
    level = logging.ERROR if notification.severity == SEVERITY_ERROR else logging.INFO
    logger.log(level, "%s: %s", notification.name, notification.message)


class GroupingSession:
    """Owns the current partition and maps user actions onto the core operations.

    ``generate`` re-runs resolution, partitioning and the reveal schedule from
    the current settings and replaces the previous partition wholesale. A failed
    run signals a notification and leaves the previous partition and settings
    as they were. Settings are saved once per successful run.
    """

    def __init__(
        self,
        store: SettingsBackend,
        timer: Timer,
        notify: Callable[[Notification], None] | None = None,
        on_reveal: Callable[[int], None] | None = None,
        on_finished: Callable[[Partition], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.notify = notify or _log_notification
        self.rng = rng or random.Random()
        loaded = store.load()
        self.settings = loaded if loaded is not None else Settings()
        self.partition: Partition | None = None
        self.controller: ReassignmentController | None = None
        self.scheduler = RevealScheduler(timer, on_reveal=on_reveal, on_finished=on_finished)

    def resolve_participants(self, settings: Settings | None = None) -> list[str]:
        settings = settings or self.settings
        return resolve(
            settings.participant_mode(),
            count=settings.participant_count,
            raw_names=settings.custom_names,
            exclusions=settings.exclusions,
        )

    def estimate(self, settings: Settings | None = None) -> tuple[int, int]:
        settings = settings or self.settings
        return estimate_groups(len(self.resolve_participants(settings)), settings.group_size)

    def generate(self, settings: Settings | None = None) -> Partition | None:
        settings = settings or self.settings
        try:
            participants = self.resolve_participants(settings)
            new_partition = partition(
                participants,
                settings.group_size,
                settings.distribution_mode,
                rng=self.rng,
            )
            if settings.suspense_mode and settings.reveal_interval < 0:
                raise InvalidConfiguration("Reveal interval cannot be negative.")
        except InvalidConfiguration as exc:
            name = NOTICE_INVALID_GROUP_SIZE if settings.group_size <= 0 else NOTICE_INVALID_SETTINGS
            self.notify(Notification(name, SEVERITY_ERROR, str(exc)))
            return None
        except EmptyInput as exc:
            self.notify(Notification(NOTICE_NO_PARTICIPANTS, SEVERITY_ERROR, str(exc)))
            return None

        # Nothing is committed until the settings are on disk.
        self.store.save(settings)
        # A stale timer must not reveal groups of the superseded partition.
        self.scheduler.cancel()
        self.settings = settings
        self.partition = new_partition
        self.controller = ReassignmentController(new_partition)

        count = len(new_partition.groups)
        self.notify(
            Notification(
                NOTICE_GENERATED,
                SEVERITY_SUCCESS,
                f"Created {count} groups from {len(participants)} participants.",
                count=count,
            )
        )
        self.scheduler.start(new_partition, settings.reveal_interval, settings.suspense_mode)
        return new_partition

    reshuffle = generate

    def _require_controller(self) -> ReassignmentController:
        if self.controller is None:
            raise UnknownGroup("No groups have been generated yet.")
        return self.controller

    def move_member(
        self,
        source_group_id: int,
        source_index: int,
        dest_group_id: int,
        dest_index: int,
    ) -> bool:
        try:
            self._require_controller().move_between_groups(
                source_group_id, source_index, dest_group_id, dest_index
            )
        except GroupingError as exc:
            self.notify(Notification(NOTICE_INVALID_MOVE, SEVERITY_ERROR, str(exc)))
            return False
        return True

    def reorder_member(self, group_id: int, from_index: int, to_index: int) -> bool:
        try:
            self._require_controller().reorder_within_group(group_id, from_index, to_index)
        except GroupingError as exc:
            self.notify(Notification(NOTICE_INVALID_MOVE, SEVERITY_ERROR, str(exc)))
            return False
        return True

    def export_text(self) -> str:
        if self.partition is None:
            return ""
        return format_partition_text(self.partition, self.settings.group_prefix)

    def export(self, path: Path) -> bool:
        if self.partition is None:
            return False
        write_partition(path, self.partition, self.settings.group_prefix)
        logger.info("Exported %d groups to %s", len(self.partition.groups), path)
        return True
