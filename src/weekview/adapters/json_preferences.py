"""File-based preference storage adapter."""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class JsonPreferenceStore:
    """
    JSON file preference storage.

    Implements PreferenceStore protocol. The whole file is rewritten on every
    set, through a temporary file so a crash never leaves half a file behind.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._values = self._read()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._values, indent=2, sort_keys=True))
        os.replace(tmp, self.path)

    def get_string_list(self, key: str) -> list[str] | None:
        value = self._values.get(key)
        if not isinstance(value, list):
            return None
        return [str(v) for v in value]

    def set_string_list(self, key: str, values: list[str]) -> None:
        self._values[key] = list(values)
        self._write()

    def get_bool(self, key: str) -> bool:
        return self._values.get(key) is True

    def set_bool(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)
        self._write()


class MemoryPreferenceStore:
    """In-process preference storage, for tests and one-off runs."""

    def __init__(self, values: dict | None = None):
        self.values = dict(values or {})

    def get_string_list(self, key: str) -> list[str] | None:
        value = self.values.get(key)
        return list(value) if isinstance(value, list) else None

    def set_string_list(self, key: str, values: list[str]) -> None:
        self.values[key] = list(values)

    def get_bool(self, key: str) -> bool:
        return self.values.get(key) is True

    def set_bool(self, key: str, value: bool) -> None:
        self.values[key] = bool(value)
