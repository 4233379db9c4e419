from __future__ import annotations

from typing import Callable

import pytest


class ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimer:
    """Deterministic stand-in for an event loop clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.pending: list[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        self.pending.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [handle for handle in self.pending if not handle.cancelled and handle.when <= target]
            if not due:
                break
            handle = min(due, key=lambda item: item.when)
            self.pending.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target

    def active_count(self) -> int:
        return sum(1 for handle in self.pending if not handle.cancelled)


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()
