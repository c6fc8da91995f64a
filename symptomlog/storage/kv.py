"""Key/value backing service contract, owner-scoped keys, and an in-memory backend."""
from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from symptomlog.utils.exceptions import KeyConflictError, StorageError

ENTRY_NAMESPACE = "entry"
SEPARATOR = "/"


def _encode_segment(value: str) -> str:
    if not value:
        raise ValueError("key segments must be non-empty")
    # safe="" so "/" inside an identifier is escaped and can never act as a separator
    return quote(value, safe="")


@dataclass(frozen=True)
class EntryKey:
    """Composite (owner, entry) storage key.

    Both segments are percent-encoded, so the separator only ever appears
    between segments and an owner prefix always ends at a segment boundary.
    """

    owner_id: str
    entry_id: str

    def encode(self) -> str:
        return SEPARATOR.join((ENTRY_NAMESPACE, _encode_segment(self.owner_id), _encode_segment(self.entry_id)))

    @staticmethod
    def owner_prefix(owner_id: str) -> str:
        return SEPARATOR.join((ENTRY_NAMESPACE, _encode_segment(owner_id), ""))

    @classmethod
    def decode(cls, key: str) -> "EntryKey":
        parts = key.split(SEPARATOR)
        if len(parts) != 3 or parts[0] != ENTRY_NAMESPACE or not parts[1] or not parts[2]:
            raise ValueError(f"not an entry key: {key!r}")
        return cls(owner_id=unquote(parts[1]), entry_id=unquote(parts[2]))

    def belongs_to(self, owner_id: str) -> bool:
        return self.owner_id == owner_id


class KeyValueStore(ABC):
    """Opaque string key -> JSON-serializable value."""

    @abstractmethod
    def set(self, key: str, value: Any, *, overwrite: bool = True) -> None:
        """Write `value`; with overwrite=False an existing key raises KeyConflictError."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        """(key, value) pairs whose key starts with `prefix`, in no particular order."""

    def scan_by_prefix(self, prefix: str) -> List[Any]:
        return [value for _key, value in self.scan_prefix(prefix)]

    def close(self) -> None:
        return None


def dumps_value(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"value is not JSON-serializable: {exc}") from exc


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local backend. Values are stored as serialized JSON text."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, *, overwrite: bool = True) -> None:
        frozen = dumps_value(value)
        with self._lock:
            if not overwrite and key in self._data:
                raise KeyConflictError(f"key already exists: {key}")
            self._data[key] = frozen

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        with self._lock:
            items = [(k, v) for k, v in self._data.items() if k.startswith(prefix)]
        return [(k, json.loads(v)) for k, v in items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


__all__ = ["EntryKey", "KeyValueStore", "InMemoryKeyValueStore", "ENTRY_NAMESPACE"]
