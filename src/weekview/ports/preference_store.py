"""Preference storage interface."""

from typing import Protocol


class PreferenceStore(Protocol):
    """Interface for flat key/value user preferences."""

    def get_string_list(self, key: str) -> list[str] | None:
        """Stored list for key, or None if never set."""
        ...

    def set_string_list(self, key: str, values: list[str]) -> None:
        ...

    def get_bool(self, key: str) -> bool:
        """Stored flag for key, False if never set."""
        ...

    def set_bool(self, key: str, value: bool) -> None:
        ...
