from __future__ import annotations

import random

import pytest

from batch_groups.errors import InvalidConfiguration
from batch_groups.models import (
    DISTRIBUTION_FIXED_CHUNK,
    REVEAL_COMPLETE,
    REVEAL_IDLE,
    REVEAL_REVEALING,
    Partition,
)
from batch_groups.partition import partition
from batch_groups.reveal import RevealScheduler, TkTimer


def four_groups(seed: int = 0) -> Partition:
    names = [f"Person {number}" for number in range(1, 9)]
    return partition(names, 2, DISTRIBUTION_FIXED_CHUNK, rng=random.Random(seed))


class Recorder:
    def __init__(self) -> None:
        self.reveals: list[tuple[int, int]] = []
        self.finished: list[Partition] = []
        self.scheduler: RevealScheduler | None = None

    def on_reveal(self, count: int) -> None:
        assert self.scheduler is not None
        self.reveals.append((id(self.scheduler.partition), count))

    def on_finished(self, result: Partition) -> None:
        self.finished.append(result)


def make_scheduler(timer) -> tuple[RevealScheduler, Recorder]:
    recorder = Recorder()
    scheduler = RevealScheduler(timer, on_reveal=recorder.on_reveal, on_finished=recorder.on_finished)
    recorder.scheduler = scheduler
    return scheduler, recorder


def test_unstaged_start_completes_synchronously(manual_timer) -> None:
    scheduler, recorder = make_scheduler(manual_timer)
    groups = four_groups()
    assert scheduler.state == REVEAL_IDLE

    scheduler.start(groups, interval=1.0, staged=False)

    assert scheduler.state == REVEAL_COMPLETE
    assert scheduler.revealed == 4
    assert recorder.finished == [groups]
    assert manual_timer.active_count() == 0


def test_staged_reveal_adds_one_group_per_interval(manual_timer) -> None:
    scheduler, recorder = make_scheduler(manual_timer)
    groups = four_groups()

    scheduler.start(groups, interval=1.0, staged=True)
    assert scheduler.state == REVEAL_REVEALING
    assert scheduler.revealed == 0

    manual_timer.advance(0)
    assert scheduler.revealed == 1
    manual_timer.advance(1.0)
    assert scheduler.revealed == 2
    manual_timer.advance(1.0)
    assert scheduler.revealed == 3
    assert scheduler.state == REVEAL_REVEALING
    assert recorder.finished == []

    manual_timer.advance(1.0)
    assert scheduler.revealed == 4
    assert scheduler.state == REVEAL_COMPLETE
    assert recorder.finished == [groups]
    assert [count for _, count in recorder.reveals] == [1, 2, 3, 4]
    assert manual_timer.active_count() == 0


def test_cadence_does_not_depend_on_group_size(manual_timer) -> None:
    scheduler, _ = make_scheduler(manual_timer)
    names = [f"Person {number}" for number in range(1, 31)]
    big = partition(names, 10, DISTRIBUTION_FIXED_CHUNK, rng=random.Random(1))

    scheduler.start(big, interval=0.5, staged=True)
    manual_timer.advance(1.0)
    assert scheduler.revealed == 3
    assert scheduler.state == REVEAL_COMPLETE


def test_restart_cancels_the_previous_schedule(manual_timer) -> None:
    scheduler, recorder = make_scheduler(manual_timer)
    first = four_groups(seed=1)
    second = four_groups(seed=2)

    scheduler.start(first, interval=1.0, staged=True)
    manual_timer.advance(1.5)
    assert scheduler.revealed == 2

    scheduler.start(second, interval=1.0, staged=True)
    assert scheduler.partition is second
    assert scheduler.revealed == 0
    assert manual_timer.active_count() == 1

    manual_timer.advance(10.0)

    first_counts = [count for owner, count in recorder.reveals if owner == id(first)]
    second_counts = [count for owner, count in recorder.reveals if owner == id(second)]
    assert first_counts == [1, 2]
    assert second_counts == [1, 2, 3, 4]
    assert recorder.finished == [second]
    assert scheduler.state == REVEAL_COMPLETE


def test_unstaged_restart_also_cancels_pending_reveal(manual_timer) -> None:
    scheduler, recorder = make_scheduler(manual_timer)
    first = four_groups(seed=1)
    second = four_groups(seed=2)

    scheduler.start(first, interval=1.0, staged=True)
    manual_timer.advance(0)
    scheduler.start(second, staged=False)
    manual_timer.advance(10.0)

    assert recorder.finished == [second]
    assert scheduler.revealed == 4
    assert [count for owner, count in recorder.reveals if owner == id(first)] == [1]


def test_is_revealed_tracks_positions(manual_timer) -> None:
    scheduler, _ = make_scheduler(manual_timer)
    scheduler.start(four_groups(), interval=1.0, staged=True)
    manual_timer.advance(1.0)

    assert scheduler.is_revealed(0)
    assert scheduler.is_revealed(1)
    assert not scheduler.is_revealed(2)
    assert not scheduler.is_revealed(-1)


def test_negative_interval_is_rejected(manual_timer) -> None:
    scheduler, _ = make_scheduler(manual_timer)
    with pytest.raises(InvalidConfiguration):
        scheduler.start(four_groups(), interval=-1.0, staged=True)
    assert scheduler.state == REVEAL_IDLE


class FakeWidget:
    def __init__(self) -> None:
        self.scheduled: dict[str, tuple[int, object]] = {}
        self.cancelled: list[str] = []

    def after(self, delay_ms: int, callback: object) -> str:
        after_id = f"after#{len(self.scheduled)}"
        self.scheduled[after_id] = (delay_ms, callback)
        return after_id

    def after_cancel(self, after_id: str) -> None:
        self.cancelled.append(after_id)


def test_tk_timer_converts_seconds_and_cancels_by_id() -> None:
    widget = FakeWidget()
    timer = TkTimer(widget)

    handle = timer.call_later(0.8, lambda: None)
    assert widget.scheduled["after#0"][0] == 800

    handle.cancel()
    assert widget.cancelled == ["after#0"]
