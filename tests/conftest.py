from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from concord.adapters.snapshots import MemorySnapshotStore
from tests.helpers.http import FakeClock

if TYPE_CHECKING:
    from pathlib import Path

CONCORD_ENV_VARS = (
    "CONCORD_REGIONS",
    "CONCORD_CONCURRENCY",
    "CONCORD_SNAPSHOT_MAX_AGE",
    "CONCORD_SNAPSHOT_FALLBACK",
    "CONCORD_PROVIDERS",
    "TIDAL_CLIENT_ID",
    "TIDAL_CLIENT_SECRET",
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def snapshots() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Environment without Concord settings and with a temporary data directory."""

    for name in CONCORD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CONCORD_DATA_DIR", str(tmp_path))
    return tmp_path
