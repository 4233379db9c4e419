from __future__ import annotations

import re
from typing import Iterable

from batch_groups.errors import InvalidConfiguration
from batch_groups.models import (
    PARTICIPANT_MODE_COUNTED,
    PARTICIPANT_MODES,
    SYNTHESIZED_LABEL,
)

_NUMERIC_SUFFIX = re.compile(r"(\d+)\s*$")


def synthesized_label(position: int) -> str:
    return f"{SYNTHESIZED_LABEL} {position}"


def synthesize_participants(count: int) -> list[str]:
    return [synthesized_label(position) for position in range(1, max(0, count) + 1)]


def parse_names(raw_names: str) -> list[str]:
    return [line.strip() for line in (raw_names or "").splitlines() if line.strip()]


def _counted_exclusion_labels(exclusions: Iterable[str], count: int) -> set[str]:
    labels: set[str] = set()
    for entry in exclusions:
        token = (entry or "").strip()
        if not token:
            continue
        labels.add(token)
        # "Person 3", "#3" and "3" all point at the third synthesized label.
        match = _NUMERIC_SUFFIX.search(token)
        if match:
            position = int(match.group(1))
            if 1 <= position <= count:
                labels.add(synthesized_label(position))
    return labels


def resolve(
    mode: str,
    count: int = 0,
    raw_names: str = "",
    exclusions: Iterable[str] = (),
) -> list[str]:
    """Build the ordered participant list for one generation run.

    Duplicate names are kept as separate entries. Excluding a name drops every
    occurrence of it. An empty result is returned as-is; the partition step
    decides whether that is an error.
    """
    if mode not in PARTICIPANT_MODES:
        raise InvalidConfiguration(
            f"Unknown participant mode '{mode}'. Expected one of: {PARTICIPANT_MODES}"
        )

    exclusions = list(exclusions or [])
    if mode == PARTICIPANT_MODE_COUNTED:
        participants = synthesize_participants(count)
        excluded = _counted_exclusion_labels(exclusions, len(participants))
        return [name for name in participants if name not in excluded]

    participants = parse_names(raw_names)
    excluded = {entry.strip() for entry in exclusions if entry and entry.strip()}
    return [name for name in participants if name not in excluded]


def effective_participant_count(
    mode: str,
    count: int = 0,
    raw_names: str = "",
    exclusions: Iterable[str] = (),
) -> int:
    return len(resolve(mode, count=count, raw_names=raw_names, exclusions=exclusions))
