"""
Shared pytest fixtures for timelog tests.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def isolate_log_path(tmp_path, monkeypatch) -> None:
    """
    Ensure tests never read or write a log file in the working directory.

    Parameters
    ----------
    tmp_path : pathlib.Path
        Temporary path provided by pytest.
    monkeypatch : pytest.MonkeyPatch
        Monkeypatch fixture for environment updates.
    """
    monkeypatch.setenv("TIMELOG_PATH", str(tmp_path / "log.json"))
