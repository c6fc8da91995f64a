"""Owner-scoped, append-only history of symptom analyses."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from symptomlog.models.entry import SymptomEntry
from symptomlog.storage.kv import EntryKey, KeyValueStore
from symptomlog.utils.exceptions import StorageError

logger = logging.getLogger("symptomlog")


@contextmanager
def _backing(operation: str, **context: Any) -> Iterator[None]:
    """Surface every backing-service failure as StorageError.

    Nothing is logged here; whoever handles the error logs it once.
    """
    try:
        yield
    except StorageError:
        raise
    except Exception as exc:
        raise StorageError(f"{operation} failed: {exc}", details={"operation": operation, **context}) from exc


class HistoryStore:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def append(self, entry: SymptomEntry) -> None:
        """Persist `entry` with a single write-once call.

        The document is fully built before the write, so a failure leaves
        nothing behind. A key collision raises KeyConflictError rather than
        replacing the existing entry.
        """
        key = EntryKey(entry.owner_id, entry.id).encode()
        document = entry.to_document()
        with _backing("history.append", entry_id=entry.id):
            self.kv.set(key, document, overwrite=False)
        logger.info({"function": "history.append", "status": "inserted", "entry_id": entry.id})

    def list_by_owner(self, owner_id: str) -> List[SymptomEntry]:
        """Every entry owned by `owner_id`, newest first.

        Equal timestamps fall back to the entry id (also descending) so the
        order is stable across calls.
        """
        with _backing("history.list_by_owner"):
            rows = self.kv.scan_prefix(EntryKey.owner_prefix(owner_id))

        entries = []
        for key, document in rows:
            try:
                parsed = EntryKey.decode(key)
            except ValueError:
                continue
            # Owner must match exactly; a textual prefix match is not enough
            if not parsed.belongs_to(owner_id):
                continue
            entry = self._load(key, document)
            if entry.owner_id != owner_id or entry.id != parsed.entry_id:
                logger.warning({"function": "history.list_by_owner", "status": "mismatched_document", "key": key})
                continue
            entries.append(entry)

        entries.sort(key=lambda e: e.sort_key, reverse=True)
        return entries

    def get(self, owner_id: str, entry_id: str) -> Optional[SymptomEntry]:
        key = EntryKey(owner_id, entry_id).encode()
        with _backing("history.get", entry_id=entry_id):
            document = self.kv.get(key)
        if document is None:
            return None
        entry = self._load(key, document)
        return entry if entry.owner_id == owner_id else None

    @staticmethod
    def _load(key: str, document: Any) -> SymptomEntry:
        try:
            return SymptomEntry.from_document(document)
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"corrupt entry document at {key}: {exc}") from exc


__all__ = ["HistoryStore"]
