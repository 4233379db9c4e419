from __future__ import annotations

import math
import random
from typing import Sequence

from batch_groups.errors import EmptyInput, InvalidConfiguration
from batch_groups.models import (
    DISTRIBUTION_BALANCED,
    DISTRIBUTION_FIXED_CHUNK,
    DISTRIBUTION_MODES,
    DISTRIBUTION_RANDOM_EXTRAS,
    Group,
    Partition,
)


def shuffled(participants: Sequence[str], rng: random.Random) -> list[str]:
    # random.Random.shuffle is a Fisher-Yates shuffle.
    order = list(participants)
    rng.shuffle(order)
    return order


def _require_group_size(group_size: int) -> None:
    if group_size <= 0:
        raise InvalidConfiguration("Group size must be greater than 0.")


def total_groups_for(participant_count: int, group_size: int) -> int:
    _require_group_size(group_size)
    return int(math.ceil(max(0, participant_count) / group_size))


def estimate_groups(participant_count: int, group_size: int) -> tuple[int, int]:
    """Return (estimated group count, participants left over after full groups)."""
    _require_group_size(group_size)
    participant_count = max(0, participant_count)
    return total_groups_for(participant_count, group_size), participant_count % group_size


def _fixed_chunks(order: list[str], group_size: int) -> list[list[str]]:
    return [order[start : start + group_size] for start in range(0, len(order), group_size)]


def _balanced_chunks(order: list[str], total_groups: int) -> list[list[str]]:
    base, extra = divmod(len(order), total_groups)
    chunks: list[list[str]] = []
    cursor = 0
    for index in range(total_groups):
        size = base + 1 if index < extra else base
        chunks.append(order[cursor : cursor + size])
        cursor += size
    return chunks


def _round_robin_chunks(order: list[str], total_groups: int) -> list[list[str]]:
    chunks: list[list[str]] = [[] for _ in range(total_groups)]
    for index, participant in enumerate(order):
        chunks[index % total_groups].append(participant)
    return chunks


def partition(
    participants: Sequence[str],
    group_size: int,
    mode: str = DISTRIBUTION_FIXED_CHUNK,
    rng: random.Random | None = None,
) -> Partition:
    _require_group_size(group_size)
    if mode not in DISTRIBUTION_MODES:
        raise InvalidConfiguration(
            f"Unknown distribution mode '{mode}'. Expected one of: {DISTRIBUTION_MODES}"
        )
    if not participants:
        raise EmptyInput("No participants available to group.")

    order = shuffled(participants, rng or random.Random())
    total_groups = total_groups_for(len(order), group_size)

    if mode == DISTRIBUTION_BALANCED:
        chunks = _balanced_chunks(order, total_groups)
    elif mode == DISTRIBUTION_RANDOM_EXTRAS:
        chunks = _round_robin_chunks(order, total_groups)
    else:
        chunks = _fixed_chunks(order, group_size)

    groups = [Group(id=index, members=members) for index, members in enumerate(chunks, start=1)]
    return Partition(groups=groups, group_size=group_size, distribution_mode=mode)
