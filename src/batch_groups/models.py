from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PARTICIPANT_MODE_COUNTED = "counted"
PARTICIPANT_MODE_NAMED = "named"
PARTICIPANT_MODES = (PARTICIPANT_MODE_COUNTED, PARTICIPANT_MODE_NAMED)

DISTRIBUTION_FIXED_CHUNK = "fixed-chunk"
DISTRIBUTION_BALANCED = "balanced"
DISTRIBUTION_RANDOM_EXTRAS = "random-extras"
DISTRIBUTION_MODES = (
    DISTRIBUTION_FIXED_CHUNK,
    DISTRIBUTION_BALANCED,
    DISTRIBUTION_RANDOM_EXTRAS,
)

REVEAL_IDLE = "idle"
REVEAL_REVEALING = "revealing"
REVEAL_COMPLETE = "complete"

SYNTHESIZED_LABEL = "Person"
DEFAULT_PARTICIPANT_COUNT = 10
DEFAULT_GROUP_SIZE = 2
DEFAULT_GROUP_PREFIX = "Team"
DEFAULT_DISTRIBUTION_MODE = DISTRIBUTION_FIXED_CHUNK
DEFAULT_REVEAL_INTERVAL = 0.8
SETTINGS_KEY = "batch-settings"


@dataclass(frozen=True)
class Group:
    id: int
    members: list[str] = field(default_factory=list)

    def label(self, prefix: str = DEFAULT_GROUP_PREFIX) -> str:
        return f"{prefix} {self.id}".strip()


@dataclass
class Partition:
    groups: list[Group]
    group_size: int
    distribution_mode: str

    def group(self, group_id: int) -> Group | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def members(self) -> list[str]:
        return [member for group in self.groups for member in group.members]

    def sizes(self) -> list[int]:
        return [len(group.members) for group in self.groups]

    def __len__(self) -> int:
        return len(self.groups)


def _as_int(raw: Any, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _as_float(raw: Any, default: float) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _as_non_negative_float(raw: Any, default: float) -> float:
    value = _as_float(raw, default)
    return value if value >= 0 else default


def _as_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        token = raw.strip().lower()
        if token in {"true", "yes", "1", "on"}:
            return True
        if token in {"false", "no", "0", "off"}:
            return False
    return default


def _distribution_from_mapping(raw: dict[str, Any]) -> str:
    mode = raw.get("distribution_mode")
    if isinstance(mode, str) and mode in DISTRIBUTION_MODES:
        return mode
    # Older stores carry one boolean flag per non-default mode.
    if _as_bool(raw.get("randomExtras"), False):
        return DISTRIBUTION_RANDOM_EXTRAS
    if _as_bool(raw.get("balanced"), False):
        return DISTRIBUTION_BALANCED
    return DEFAULT_DISTRIBUTION_MODE


@dataclass
class Settings:
    participant_count: int = DEFAULT_PARTICIPANT_COUNT
    group_size: int = DEFAULT_GROUP_SIZE
    use_custom_names: bool = False
    custom_names: str = ""
    group_prefix: str = DEFAULT_GROUP_PREFIX
    suspense_mode: bool = False
    distribution_mode: str = DEFAULT_DISTRIBUTION_MODE
    exclusions: list[str] = field(default_factory=list)
    reveal_interval: float = DEFAULT_REVEAL_INTERVAL

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> "Settings":
        raw = raw or {}
        exclusions = raw.get("exclusions", [])
        if not isinstance(exclusions, list):
            exclusions = []
        prefix = raw.get("group_prefix", DEFAULT_GROUP_PREFIX)
        custom_names = raw.get("custom_names", "")
        return cls(
            participant_count=_as_int(raw.get("participant_count"), DEFAULT_PARTICIPANT_COUNT),
            group_size=_as_int(raw.get("group_size"), DEFAULT_GROUP_SIZE),
            use_custom_names=_as_bool(raw.get("use_custom_names"), False),
            custom_names=custom_names if isinstance(custom_names, str) else "",
            group_prefix=prefix if isinstance(prefix, str) and prefix.strip() else DEFAULT_GROUP_PREFIX,
            suspense_mode=_as_bool(raw.get("suspense_mode"), False),
            distribution_mode=_distribution_from_mapping(raw),
            exclusions=[str(item) for item in exclusions if item is not None],
            reveal_interval=_as_non_negative_float(raw.get("reveal_interval"), DEFAULT_REVEAL_INTERVAL),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "participant_count": int(self.participant_count),
            "group_size": int(self.group_size),
            "use_custom_names": bool(self.use_custom_names),
            "custom_names": self.custom_names,
            "group_prefix": self.group_prefix,
            "suspense_mode": bool(self.suspense_mode),
            "distribution_mode": self.distribution_mode,
            "exclusions": list(self.exclusions),
            "reveal_interval": float(self.reveal_interval),
        }

    def participant_mode(self) -> str:
        if self.use_custom_names and self.custom_names.strip():
            return PARTICIPANT_MODE_NAMED
        return PARTICIPANT_MODE_COUNTED
