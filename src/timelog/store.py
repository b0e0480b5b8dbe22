#!/usr/bin/env python3
"""
Heap-backed entry storage and the JSON log file codec.
"""

from __future__ import annotations

import heapq
import json
import logging
import os
import re
from datetime import datetime, timezone
from itertools import count
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .entry import Entry, compare_entries
from .errors import EmptyLogError, LogFormatError

logger = logging.getLogger(__name__)

LOG_PATH_ENV = "TIMELOG_PATH"
DEFAULT_LOG_NAME = "log.json"

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


class _HeapItem:
    """
    Max-heap wrapper ordering entries by ``compare_entries``.

    Ties go to the item pushed last.
    """

    __slots__ = ("entry", "sequence")

    def __init__(self, entry: Entry, sequence: int) -> None:
        self.entry = entry
        self.sequence = sequence

    def __lt__(self, other: "_HeapItem") -> bool:
        order = compare_entries(self.entry, other.entry)
        if order:
            return order > 0
        return self.sequence > other.sequence


class EntryStore:
    """
    Collection of entries that always yields them in start-time order.
    """

    def __init__(self) -> None:
        self._heap: List[_HeapItem] = []
        self._counter = count()

    @classmethod
    def from_entries(cls, entries: Iterable[Entry]) -> "EntryStore":
        store = cls()
        for entry in entries:
            store.push(entry)
        return store

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def push(self, entry: Entry) -> None:
        """
        Add an entry to the store.

        Parameters
        ----------
        entry : Entry
            Entry to add.
        """
        heapq.heappush(self._heap, _HeapItem(entry, next(self._counter)))

    def peek_most_recent(self) -> Entry:
        """
        Return the most recently started entry without removing it.

        Raises
        ------
        EmptyLogError
            If the store has no entries.
        """
        if not self._heap:
            raise EmptyLogError()
        return self._heap[0].entry

    def pop_most_recent(self) -> Entry:
        """
        Remove and return the most recently started entry.

        Returns
        -------
        Entry
            Entry with the greatest start time.

        Raises
        ------
        EmptyLogError
            If the store has no entries.
        """
        if not self._heap:
            raise EmptyLogError()
        entry = heapq.heappop(self._heap).entry
        logger.debug("Popped entry started at %s", entry.start)
        return entry

    def drain_sorted(self) -> List[Entry]:
        """
        Consume the store and return its entries in ascending start order.

        Returns
        -------
        List[Entry]
            All entries, oldest first. The store is empty afterwards.
        """
        drained: List[Entry] = []
        while self._heap:
            drained.append(heapq.heappop(self._heap).entry)
        drained.reverse()
        return drained


def get_log_path(override: Optional[Path] = None) -> Path:
    """
    Resolve the log file path.

    Parameters
    ----------
    override : Optional[Path], optional
        Explicit path, typically from ``--log-file``.

    Returns
    -------
    Path
        Override, else ``TIMELOG_PATH``, else ``log.json`` in the working
        directory.
    """
    if override:
        return Path(override)
    env_path = os.environ.get(LOG_PATH_ENV, "").strip()
    if env_path:
        return Path(os.path.expandvars(os.path.expanduser(env_path)))
    return Path(DEFAULT_LOG_NAME)


def format_storage_timestamp(value: datetime) -> str:
    """
    Format a timestamp for storage.

    Examples
    --------
    >>> format_storage_timestamp(datetime(2024, 1, 3, 9, 0, tzinfo=timezone.utc))
    '2024-01-03T09:00:00+00:00'
    """
    return value.isoformat()


def parse_storage_timestamp(value: str) -> datetime:
    """
    Parse a stored timestamp.

    Parameters
    ----------
    value : str
        ISO 8601 timestamp. A trailing ``Z`` means UTC and fractional
        seconds beyond microseconds are truncated.

    Returns
    -------
    datetime
        Timezone-aware datetime; naive values are read as local time.

    Raises
    ------
    ValueError
        If the value is not an ISO 8601 timestamp.

    Examples
    --------
    >>> parse_storage_timestamp("2019-03-01T10:15:30.123456789+01:00").isoformat()
    '2019-03-01T10:15:30.123456+01:00'
    >>> parse_storage_timestamp("2024-01-03T09:00:00Z").isoformat()
    '2024-01-03T09:00:00+00:00'
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _EXCESS_FRACTION.sub(r"\1", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.astimezone()
    return parsed


def entry_to_record(entry: Entry) -> Dict[str, Any]:
    """
    Serialize an entry, omitting absent and empty fields.

    Examples
    --------
    >>> entry_to_record(Entry(goal="Draft"))
    {'goal': 'Draft'}
    """
    record: Dict[str, Any] = {}
    if entry.start is not None:
        record["start"] = format_storage_timestamp(entry.start)
    if entry.stop is not None:
        record["stop"] = format_storage_timestamp(entry.stop)
    if entry.goal:
        record["goal"] = entry.goal
    if entry.result:
        record["result"] = entry.result
    if entry.notes:
        record["notes"] = list(entry.notes)
    return record


def _read_timestamp(record: Dict[str, Any], key: str) -> Optional[datetime]:
    raw = record.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValueError(f"'{key}' must be a timestamp string")
    try:
        return parse_storage_timestamp(raw)
    except ValueError as exc:
        raise ValueError(f"invalid '{key}' timestamp {raw!r}") from exc


def _read_text(record: Dict[str, Any], key: str) -> str:
    raw = record.get(key, "")
    if not isinstance(raw, str):
        raise ValueError(f"'{key}' must be a string")
    return raw


def entry_from_record(record: Any) -> Entry:
    """
    Build an entry from a stored record, filling defaults for absent fields.

    Raises
    ------
    ValueError
        If the record or one of its fields has the wrong shape.
    """
    if not isinstance(record, dict):
        raise ValueError("entry must be an object")
    notes = record.get("notes", [])
    if not isinstance(notes, list) or not all(isinstance(note, str) for note in notes):
        raise ValueError("'notes' must be a list of strings")
    return Entry(
        start=_read_timestamp(record, "start"),
        stop=_read_timestamp(record, "stop"),
        goal=_read_text(record, "goal"),
        result=_read_text(record, "result"),
        notes=list(notes),
    )


def load_entries(path: Path) -> EntryStore:
    """
    Load the log file into a store.

    Parameters
    ----------
    path : Path
        Log file path.

    Returns
    -------
    EntryStore
        Loaded entries; empty when the file does not exist or is blank.

    Raises
    ------
    LogFormatError
        If the file content is not a valid entry list.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("Log file %s does not exist; starting empty", path)
        return EntryStore()
    if not raw.strip():
        return EntryStore()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LogFormatError(f"invalid JSON: {exc}", path) from exc
    if not isinstance(data, list):
        raise LogFormatError("expected a list of entries", path)
    store = EntryStore()
    for index, record in enumerate(data):
        try:
            store.push(entry_from_record(record))
        except ValueError as exc:
            raise LogFormatError(f"entry {index}: {exc}", path) from exc
    logger.debug("Loaded %d entries from %s", len(store), path)
    return store


def save_entries(path: Path, store: EntryStore) -> None:
    """
    Drain the store and write every entry to the log file.

    The file is overwritten in full.

    Parameters
    ----------
    path : Path
        Log file path.
    store : EntryStore
        Entries to persist. The store is empty afterwards.
    """
    entries = store.drain_sorted()
    payload = [entry_to_record(entry) for entry in entries]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    logger.debug("Saved %d entries to %s", len(entries), path)
