# tem_client/Sync/record_store.py
# Description: In-memory, ordered, key-unique working copy of the remote record set.
#
# Imports
from collections import Counter
from typing import Dict, Iterable, Iterator, Optional, Tuple
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
from ..tem_api.schemas import LANGUAGE_CATEGORIES, Record
#
########################################################################################################################
#
# Functions:

Snapshot = Tuple[Record, ...]


class RecordStore:
    """
    The local store holds an immutable tuple that is swapped out on every
    write. A snapshot is therefore just the current tuple, and restoring it
    puts back the very same object.

    Keys are unique: writing a record whose key exists replaces the old entry
    at its position.
    """

    def __init__(self, records: Iterable[Record] = (), last_write_wins: bool = True):
        self.last_write_wins = last_write_wins
        self._records: Snapshot = ()
        self._index: Dict[str, int] = {}
        if records:
            self.merge_batch(records)

    # --- Reads ---

    @property
    def records(self) -> Snapshot:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def get(self, key: str) -> Optional[Record]:
        position = self._index.get(key)
        return None if position is None else self._records[position]

    def keys(self) -> Tuple[str, ...]:
        return tuple(record.key for record in self._records)

    def language_counts(self) -> Dict[str, int]:
        counts = Counter(record.language for record in self._records)
        result = {category: counts.get(category, 0) for category in LANGUAGE_CATEGORIES}
        result['total'] = len(self._records)
        return result

    # --- Snapshots ---

    def snapshot(self) -> Snapshot:
        return self._records

    def restore(self, snapshot: Snapshot) -> None:
        self._swap(snapshot)

    # --- Writes ---

    def _swap(self, records: Snapshot) -> None:
        self._records = records
        self._index = {record.key: position for position, record in enumerate(records)}

    def _incoming_wins(self, existing: Record, incoming: Record) -> bool:
        if not self.last_write_wins:
            return True
        if existing.updated_at is None or incoming.updated_at is None:
            return True
        return incoming.updated_at >= existing.updated_at

    def merge_batch(self, records: Iterable[Record]) -> int:
        """
        Appends new keys in arrival order and replaces known keys in place.
        Returns how many entries were written (appended or replaced).
        """
        merged = list(self._records)
        index = dict(self._index)
        written = 0
        for record in records:
            position = index.get(record.key)
            if position is None:
                index[record.key] = len(merged)
                merged.append(record)
                written += 1
            elif self._incoming_wins(merged[position], record):
                merged[position] = record
                written += 1
            else:
                logger.debug(f"Keeping newer local copy of '{record.key}' over batch data")
        self._records = tuple(merged)
        self._index = index
        return written

    def upsert_front(self, record: Record) -> bool:
        """Replaces in place when the key exists, otherwise prepends. Returns True if it was new."""
        position = self._index.get(record.key)
        if position is None:
            self._swap((record,) + self._records)
            return True
        updated = list(self._records)
        updated[position] = record
        self._swap(tuple(updated))
        return False

    def replace(self, record: Record) -> None:
        position = self._index.get(record.key)
        if position is None:
            raise KeyError(record.key)
        updated = list(self._records)
        updated[position] = record
        self._records = tuple(updated)

    def remove(self, key: str) -> Optional[Record]:
        position = self._index.get(key)
        if position is None:
            return None
        removed = self._records[position]
        self._swap(self._records[:position] + self._records[position + 1:])
        return removed

    def clear(self) -> None:
        self._swap(())

#
# End of tem_client/Sync/record_store.py
########################################################################################################################
