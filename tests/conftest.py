"""Pytest configuration for test isolation.

The CLI loads ``.env`` from the current working directory and reads
``EXPENSE_INSIGHTS_*`` variables. To keep tests hermetic, every test runs in
its own temporary directory with those variables cleared.
"""

from __future__ import annotations

from pathlib import Path

import pytest

_ENV_VARS = ("EXPENSE_INSIGHTS_DEFAULT_CURRENCY", "EXPENSE_INSIGHTS_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test from an empty working directory with a clean environment."""

    for name in _ENV_VARS:
        # setenv first so teardown also removes values loaded from a .env file.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
