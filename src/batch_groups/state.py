from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from batch_groups.models import SETTINGS_KEY, Settings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("data") / "settings.json"


def _read_store(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return {}
    raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object.")
    return raw


class SettingsStore:
    """String-keyed JSON file holding the saved settings record."""

    def __init__(self, path: Path = DEFAULT_SETTINGS_PATH, key: str = SETTINGS_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def load(self) -> Settings | None:
        raw = _read_store(self.path).get(self.key)
        if raw is None:
            return None
        if isinstance(raw, str):
            # Values written by a browser-style store are JSON strings.
            raw = json.loads(raw)
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed settings under '%s' in %s", self.key, self.path)
            return None
        return Settings.from_mapping(raw)

    def load_or_default(self) -> Settings:
        settings = self.load()
        return settings if settings is not None else Settings()

    def save(self, settings: Settings) -> None:
        store = _read_store(self.path)
        store[self.key] = settings.to_mapping()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(store, indent=2, sort_keys=True), encoding="utf-8")
        logger.debug("Saved settings to %s", self.path)


class MemorySettingsStore:
    """In-process store with the same interface, for sessions without a file."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._saved = settings.to_mapping() if settings is not None else None
        self.save_count = 0

    def load(self) -> Settings | None:
        if self._saved is None:
            return None
        return Settings.from_mapping(self._saved)

    def load_or_default(self) -> Settings:
        settings = self.load()
        return settings if settings is not None else Settings()

    def save(self, settings: Settings) -> None:
        self._saved = settings.to_mapping()
        self.save_count += 1
