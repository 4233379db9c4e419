from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

from batch_groups.errors import InvalidConfiguration
from batch_groups.models import (
    DEFAULT_REVEAL_INTERVAL,
    REVEAL_COMPLETE,
    REVEAL_IDLE,
    REVEAL_REVEALING,
    Partition,
)

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Timer(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimer:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


class _TkAfterHandle:
    def __init__(self, widget: Any, after_id: str) -> None:
        self.widget = widget
        self.after_id = after_id

    def cancel(self) -> None:
        self.widget.after_cancel(self.after_id)


class TkTimer:
    """Schedules callbacks with a tkinter widget's ``after``."""

    def __init__(self, widget: Any) -> None:
        self.widget = widget

    def call_later(self, delay: float, callback: Callable[[], None]) -> _TkAfterHandle:
        after_id = self.widget.after(max(0, int(round(delay * 1000))), callback)
        return _TkAfterHandle(self.widget, after_id)


class RevealScheduler:
    """Unveils the groups of a partition one at a time.

    ``on_reveal(count)`` fires after every newly revealed group and
    ``on_finished(partition)`` once all groups are visible. Only one schedule is
    active at a time: a new ``start`` cancels the pending timer first.
    """

    def __init__(
        self,
        timer: Timer,
        on_reveal: Callable[[int], None] | None = None,
        on_finished: Callable[[Partition], None] | None = None,
    ) -> None:
        self.timer = timer
        self.on_reveal = on_reveal
        self.on_finished = on_finished
        self.state = REVEAL_IDLE
        self.partition: Partition | None = None
        self.revealed = 0
        self.interval = DEFAULT_REVEAL_INTERVAL
        self._handle: TimerHandle | None = None

    @property
    def total(self) -> int:
        return len(self.partition.groups) if self.partition is not None else 0

    @property
    def active(self) -> bool:
        return self.state == REVEAL_REVEALING

    def is_revealed(self, position: int) -> bool:
        return 0 <= position < self.revealed

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Cancelled reveal schedule at %d/%d", self.revealed, self.total)

    def start(
        self,
        partition: Partition,
        interval: float = DEFAULT_REVEAL_INTERVAL,
        staged: bool = False,
    ) -> None:
        if staged and interval < 0:
            raise InvalidConfiguration("Reveal interval cannot be negative.")
        self.cancel()

        self.partition = partition
        self.interval = interval
        if not staged or not partition.groups:
            self.revealed = len(partition.groups)
            self.state = REVEAL_COMPLETE
            if self.on_reveal:
                self.on_reveal(self.revealed)
            self._finish()
            return

        self.revealed = 0
        self.state = REVEAL_REVEALING
        logger.debug("Revealing %d groups every %.3fs", self.total, interval)
        self._handle = self.timer.call_later(0, self._reveal_next)

    def _reveal_next(self) -> None:
        self._handle = None
        if self.state != REVEAL_REVEALING:
            return
        self.revealed += 1
        if self.on_reveal:
            self.on_reveal(self.revealed)
        if self.revealed >= self.total:
            self.state = REVEAL_COMPLETE
            self._finish()
            return
        self._handle = self.timer.call_later(self.interval, self._reveal_next)

    def _finish(self) -> None:
        logger.debug("Reveal complete: %d groups", self.revealed)
        if self.on_finished and self.partition is not None:
            self.on_finished(self.partition)
