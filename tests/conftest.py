"""Pytest configuration for test isolation.

The ledger persists to ``PL_DATA_DIR`` (default ``./.ledger``) and the CLI
reads ``OPENAI_API_KEY`` from the environment or a local ``.env``. To keep
tests hermetic, each test gets its own data directory and an empty API key,
so no test touches the working tree or the network.
"""

from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Make the workspace packages importable without an editable install.
_ROOT = Path(__file__).resolve().parents[1]
for _p in (_ROOT, _ROOT / "libs" / "db" / "src", _ROOT / "packages"):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

# A fixed "today" keeps seeded dates and forecast windows deterministic.
TODAY = date(2024, 6, 15)


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Point storage at a per-test directory and disable the provider.

    An empty (rather than unset) ``OPENAI_API_KEY`` also stops
    ``load_dotenv(override=False)`` from picking up a developer's key.
    """

    data_dir = tmp_path_factory.mktemp("ledger")
    monkeypatch.setenv("PL_DATA_DIR", os.fspath(data_dir))
    monkeypatch.setenv("OPENAI_API_KEY", "")
    for name in (
        "PL_STORAGE_BACKEND",
        "DATABASE_URL",
        "PL_OPENAI_MODEL",
        "PL_OPENAI_TIMEOUT",
        "PL_IMPORT_MAX_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def today() -> date:
    return TODAY
