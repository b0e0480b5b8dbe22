"""
Tests for the entry store and the JSON log codec.
"""

from __future__ import annotations

import doctest
import json
from datetime import datetime, timedelta, timezone

import pytest

import timelog.store as store_module
from timelog.entry import Entry
from timelog.errors import EmptyLogError, LogFormatError
from timelog.store import EntryStore, get_log_path, load_entries, save_entries


def _at(day: int, hour: int = 9) -> datetime:
    return datetime(2024, 1, day, hour, 0, tzinfo=timezone.utc)


@pytest.mark.unit
def test_pop_most_recent_returns_latest_start_first():
    """
    Ensure pops follow start time rather than insertion order.

    Returns
    -------
    None
        This test asserts max-heap extraction.
    """
    older = Entry(start=_at(1), goal="A")
    newer = Entry(start=_at(2), goal="B")
    store = EntryStore.from_entries([newer, older])

    assert store.pop_most_recent().goal == "B"
    assert store.pop_most_recent().goal == "A"
    assert len(store) == 0


@pytest.mark.unit
def test_pop_most_recent_on_empty_store_raises():
    """
    Ensure popping an empty store raises EmptyLogError.

    Returns
    -------
    None
        This test asserts empty store handling.
    """
    store = EntryStore()

    with pytest.raises(EmptyLogError):
        store.pop_most_recent()
    with pytest.raises(EmptyLogError):
        store.peek_most_recent()


@pytest.mark.unit
def test_drain_sorted_orders_and_empties():
    """
    Ensure draining yields ascending start order and empties the store.

    Returns
    -------
    None
        This test asserts sorted draining.
    """
    store = EntryStore()
    for entry in [
        Entry(start=_at(3), goal="D"),
        Entry(goal="C"),
        Entry(start=_at(1), goal="A"),
        Entry(start=_at(2), goal="B"),
    ]:
        store.push(entry)

    drained = store.drain_sorted()

    assert [entry.goal for entry in drained] == ["C", "A", "B", "D"]
    assert not store


@pytest.mark.unit
def test_equal_starts_pop_last_pushed_first():
    """
    Ensure ties on start time resolve to the most recently pushed entry.

    Returns
    -------
    None
        This test asserts deterministic tie handling.
    """
    store = EntryStore.from_entries(
        [Entry(start=_at(1), goal="first"), Entry(start=_at(1), goal="second")]
    )

    assert store.peek_most_recent().goal == "second"
    assert [entry.goal for entry in store.drain_sorted()] == ["first", "second"]


@pytest.mark.unit
def test_load_missing_file_is_empty(tmp_path):
    """
    Ensure a missing log file loads as an empty store.

    Returns
    -------
    None
        This test asserts missing file handling.
    """
    store = load_entries(tmp_path / "absent.json")

    assert len(store) == 0


@pytest.mark.unit
def test_load_blank_file_is_empty(tmp_path):
    """
    Ensure a whitespace-only log file loads as an empty store.

    Returns
    -------
    None
        This test asserts blank file handling.
    """
    path = tmp_path / "log.json"
    path.write_text("\n  \n", encoding="utf-8")

    assert len(load_entries(path)) == 0


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"start": "2024-01-01T09:00:00+00:00"}',
        '["entry"]',
        '[{"start": "yesterday"}]',
        '[{"start": 5}]',
        '[{"goal": ["a"]}]',
        '[{"notes": "single note"}]',
    ],
)
@pytest.mark.unit
def test_load_malformed_file_raises(tmp_path, content):
    """
    Ensure unparsable log content raises LogFormatError.

    Parameters
    ----------
    content : str
        Malformed file content.

    Returns
    -------
    None
        This test asserts malformed storage handling.
    """
    path = tmp_path / "log.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(LogFormatError) as excinfo:
        load_entries(path)

    assert excinfo.value.path == path


@pytest.mark.unit
def test_round_trip_open_entry(tmp_path):
    """
    Ensure an open entry survives save and load unchanged.

    Returns
    -------
    None
        This test asserts persistence round trips.
    """
    path = tmp_path / "log.json"
    original = Entry(
        start=datetime(2024, 1, 3, 9, 15, 30, 250000, tzinfo=timezone(timedelta(hours=-5))),
        goal="Draft the report",
    )

    save_entries(path, EntryStore.from_entries([original]))
    loaded = load_entries(path).drain_sorted()

    assert loaded == [original]
    assert loaded[0].notes == []


@pytest.mark.unit
def test_save_writes_sorted_compact_records(tmp_path):
    """
    Ensure saved records are sorted and omit empty fields.

    Returns
    -------
    None
        This test asserts the persisted layout.
    """
    path = tmp_path / "nested" / "log.json"
    store = EntryStore.from_entries(
        [
            Entry(start=_at(2), goal="Second"),
            Entry(
                start=_at(1),
                stop=_at(1, 10),
                goal="First",
                result="Done",
                notes=["note"],
            ),
        ]
    )

    save_entries(path, store)
    data = json.loads(path.read_text(encoding="utf-8"))

    assert data == [
        {
            "start": "2024-01-01T09:00:00+00:00",
            "stop": "2024-01-01T10:00:00+00:00",
            "goal": "First",
            "result": "Done",
            "notes": ["note"],
        },
        {"start": "2024-01-02T09:00:00+00:00", "goal": "Second"},
    ]
    assert list(data[0]) == ["start", "stop", "goal", "result", "notes"]
    assert len(store) == 0


@pytest.mark.unit
def test_load_reads_nanosecond_timestamps(tmp_path):
    """
    Ensure timestamps with nanosecond fractions load at microsecond precision.

    Returns
    -------
    None
        This test asserts legacy timestamp parsing.
    """
    path = tmp_path / "log.json"
    path.write_text(
        json.dumps(
            [
                {
                    "start": "2019-03-01T10:15:30.123456789+01:00",
                    "stop": "2019-03-01T11:15:30.987654321+01:00",
                    "goal": "Legacy",
                    "extra": True,
                }
            ]
        ),
        encoding="utf-8",
    )

    entry = load_entries(path).pop_most_recent()

    assert entry.start == datetime(
        2019, 3, 1, 10, 15, 30, 123456, tzinfo=timezone(timedelta(hours=1))
    )
    assert entry.stop.microsecond == 987654
    assert entry.goal == "Legacy"


@pytest.mark.unit
def test_get_log_path_precedence(monkeypatch, tmp_path):
    """
    Ensure explicit paths win over the environment, which wins over the default.

    Returns
    -------
    None
        This test asserts log path resolution.
    """
    env_path = tmp_path / "env.json"
    monkeypatch.setenv(store_module.LOG_PATH_ENV, str(env_path))

    assert get_log_path(tmp_path / "explicit.json") == tmp_path / "explicit.json"
    assert get_log_path() == env_path

    monkeypatch.delenv(store_module.LOG_PATH_ENV)
    assert str(get_log_path()) == store_module.DEFAULT_LOG_NAME


@pytest.mark.unit
def test_store_doctest_examples():
    """
    Run doctest examples embedded in store helpers.

    Returns
    -------
    None
        This test asserts doctest coverage for store helpers.
    """
    results = doctest.testmod(store_module)
    assert results.failed == 0
