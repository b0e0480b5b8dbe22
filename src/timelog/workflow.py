#!/usr/bin/env python3
"""
Start/stop/note workflows and their CLI handlers.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional, Sequence

from .entry import Entry, format_entry
from .errors import EntryAlreadyStoppedError
from .store import EntryStore, load_entries, save_entries
from .summary import Granularity, render_summary

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """
    Return the current time in the local timezone.
    """
    return datetime.now().astimezone()


def start_entry(
    store: EntryStore,
    goal: str,
    now: Optional[datetime] = None,
) -> Entry:
    """
    Open a new entry.

    Parameters
    ----------
    store : EntryStore
        Store to add the entry to.
    goal : str
        Intended work.
    now : Optional[datetime], optional
        Start time (default: current local time).

    Returns
    -------
    Entry
        The new entry.
    """
    entry = Entry(start=now or local_now(), goal=goal)
    store.push(entry)
    logger.debug("Started entry at %s", entry.start)
    return entry


def stop_latest(
    store: EntryStore,
    result: str,
    now: Optional[datetime] = None,
) -> Entry:
    """
    Complete the most recently started entry.

    Parameters
    ----------
    store : EntryStore
        Store holding the entry.
    result : str
        Outcome text.
    now : Optional[datetime], optional
        Stop time (default: current local time).

    Returns
    -------
    Entry
        The completed entry.

    Raises
    ------
    EmptyLogError
        If the store has no entries.
    EntryAlreadyStoppedError
        If the latest entry already has a stop time. The store is unchanged.
    """
    entry = store.pop_most_recent()
    try:
        if not entry.is_open:
            raise EntryAlreadyStoppedError()
        entry.stop = now or local_now()
        entry.result = result
    finally:
        store.push(entry)
    logger.debug("Stopped entry started at %s", entry.start)
    return entry


def add_note(store: EntryStore, note: str) -> Entry:
    """
    Append a note to the most recently started entry.

    Raises
    ------
    EmptyLogError
        If the store has no entries.
    """
    entry = store.pop_most_recent()
    entry.notes.append(note)
    store.push(entry)
    return entry


def read_text_input(prompt: str, stream: Optional[BinaryIO] = None) -> str:
    """
    Read all of standard input as UTF-8 text.

    Parameters
    ----------
    prompt : str
        Hint written to stderr when reading from a terminal.
    stream : Optional[BinaryIO], optional
        Byte stream to read (default: stdin).

    Returns
    -------
    str
        Decoded text.

    Raises
    ------
    UnicodeDecodeError
        If the input is not valid UTF-8.
    """
    if stream is None:
        if sys.stdin.isatty():
            print(f"{prompt} (end with Ctrl-D):", file=sys.stderr)
        stream = sys.stdin.buffer
    return stream.read().decode("utf-8")


def run_print(log_path: Path) -> int:
    """
    Print every entry, oldest first.
    """
    entries = load_entries(log_path).drain_sorted()
    for index, entry in enumerate(entries):
        if index:
            print()
        print(format_entry(entry))
    return 0


def run_start(log_path: Path, stream: Optional[BinaryIO] = None) -> int:
    """
    Read a goal and open a new entry.
    """
    now = local_now()
    store = load_entries(log_path)
    goal = read_text_input("Goal", stream)
    start_entry(store, goal, now)
    save_entries(log_path, store)
    return 0


def run_stop(log_path: Path, stream: Optional[BinaryIO] = None) -> int:
    """
    Read a result and complete the latest entry.
    """
    now = local_now()
    store = load_entries(log_path)
    if not store.peek_most_recent().is_open:
        raise EntryAlreadyStoppedError()
    result = read_text_input("Result", stream)
    stop_latest(store, result, now)
    save_entries(log_path, store)
    return 0


def run_note(log_path: Path, stream: Optional[BinaryIO] = None) -> int:
    """
    Read a note and append it to the latest entry.
    """
    store = load_entries(log_path)
    # fail on an empty log before waiting on input
    store.peek_most_recent()
    note = read_text_input("Note", stream)
    add_note(store, note)
    save_entries(log_path, store)
    return 0


def run_summary(log_path: Path, granularities: Sequence[Granularity]) -> int:
    """
    Print duration totals for the requested periods.
    """
    entries = load_entries(log_path).drain_sorted()
    for line in render_summary(entries, granularities):
        print(line)
    return 0
