"""Key/value accessors shared by settings records."""

from __future__ import annotations

import copy
from typing import Any, Dict


class Settings:
    """In-memory settings mapping with convenience accessors.

    Nothing here touches the disk; persisting is up to the owning session.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if data is not None else {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data!r})"

    def read_setting(self, key: str, default: Any = None) -> Any:
        value = self.data.get(key)
        if value is None and default is not None:
            # store a copy of mutable defaults so callers can edit it in place
            if isinstance(default, (dict, list)):
                default = copy.deepcopy(default)
                self.data[key] = default
            return default
        return value

    def save_setting(self, key: str, value: Any) -> "Settings":
        self.data[key] = value
        return self

    def del_setting(self, key: str) -> "Settings":
        self.data.pop(key, None)
        return self

    def child(self, key: str) -> "Settings":
        """Wrap the nested mapping at ``key``, creating it if needed."""
        value = self.data.get(key)
        if not isinstance(value, dict):
            value = {}
            self.data[key] = value
        return Settings(value)

    def has(self, key: str) -> bool:
        return self.data.get(key) is not None

    def has_not(self, key: str) -> bool:
        return self.data.get(key) is None

    def is_true(self, key: str) -> bool:
        return self.data.get(key) is True

    def is_false(self, key: str) -> bool:
        return self.data.get(key) is False

    def nil_or_true(self, key: str) -> bool:
        value = self.data.get(key)
        return value is None or value is True

    def nil_or_false(self, key: str) -> bool:
        value = self.data.get(key)
        return value is None or value is False

    def make_true(self, key: str) -> "Settings":
        self.data[key] = True
        return self

    def make_false(self, key: str) -> "Settings":
        self.data[key] = False
        return self

    def flip_true(self, key: str) -> "Settings":
        """True becomes unset, anything else becomes True."""
        if self.is_true(key):
            self.data.pop(key, None)
        else:
            self.data[key] = True
        return self

    def flip_nil_or_true(self, key: str) -> "Settings":
        """Unset or True becomes False, False becomes unset."""
        if self.nil_or_true(key):
            self.data[key] = False
        else:
            self.data.pop(key, None)
        return self

    def add_table_item(self, key: str, value: Any) -> "Settings":
        items = self.data.get(key)
        if not isinstance(items, list):
            items = []
            self.data[key] = items
        items.append(value)
        return self

    def remove_table_item(self, key: str, index: int) -> "Settings":
        """Remove the item at 1-based ``index``, as stored on disk."""
        items = self.data.get(key)
        if isinstance(items, list) and 1 <= index <= len(items):
            del items[index - 1]
        return self
