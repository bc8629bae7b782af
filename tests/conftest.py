"""Pytest configuration for the SoundDrop test suite.

``pytest`` imports ``tests.conftest`` before collecting test modules, which
gives us a hook to put the repository root on ``sys.path`` and to keep the
environment from leaking a developer's ``.env`` into the settings under test.
"""

from __future__ import annotations

import pytest

from tests import _ensure_repo_on_path


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop connection settings so tests never reach a real database or Redis."""

    for name in ("DATABASE_URL", "REDIS_URL", "CORS_ALLOW_ORIGINS", "USE_SQLITE"):
        monkeypatch.delenv(name, raising=False)
