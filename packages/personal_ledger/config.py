"""Runtime settings resolved from environment variables.

The CLI loads a local ``.env`` with ``python-dotenv`` before calling
:func:`load_settings`; library code never reads the environment on its own
except through this module.

Variables
---------
``PL_STORAGE_BACKEND``
    ``file`` (default), ``sql`` or ``memory``.
``PL_DATA_DIR``
    Directory for the JSON file backend and the default SQLite file
    (default ``./.ledger``).
``DATABASE_URL``
    SQLAlchemy URL for the ``sql`` backend. Defaults to a SQLite file under
    ``PL_DATA_DIR``.
``OPENAI_API_KEY``
    Enables the OpenAI-backed advisor when set.
``PL_OPENAI_MODEL`` / ``PL_OPENAI_TIMEOUT``
    Model name and per-call timeout in seconds.
``PL_IMPORT_MAX_WORKERS``
    Concurrency for per-row categorization during CSV import (1..32).
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

type StorageBackend = Literal["file", "sql", "memory"]

_BACKENDS: tuple[str, ...] = ("file", "sql", "memory")

DEFAULT_MODEL = "gpt-5"
DEFAULT_TIMEOUT_SEC = 30.0
DEFAULT_IMPORT_MAX_WORKERS = 4
_MAX_IMPORT_WORKERS = 32


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration for one process."""

    storage_backend: StorageBackend = "file"
    data_dir: Path = Path(".ledger")
    database_url: str | None = None
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_MODEL
    openai_timeout: float = DEFAULT_TIMEOUT_SEC
    import_max_workers: int = DEFAULT_IMPORT_MAX_WORKERS

    def __post_init__(self) -> None:
        if self.storage_backend not in _BACKENDS:
            raise ValueError(
                f"PL_STORAGE_BACKEND must be one of {', '.join(_BACKENDS)}; "
                f"got {self.storage_backend!r}"
            )
        if not math.isfinite(self.openai_timeout) or self.openai_timeout <= 0:
            raise ValueError("PL_OPENAI_TIMEOUT must be a positive number of seconds")
        if not 1 <= self.import_max_workers <= _MAX_IMPORT_WORKERS:
            raise ValueError(
                f"PL_IMPORT_MAX_WORKERS must be between 1 and {_MAX_IMPORT_WORKERS}"
            )

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+pysqlite:///{(self.data_dir / 'ledger.db').resolve()}"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number; got {raw!r}") from e


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer; got {raw!r}") from e


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``)."""

    source: Mapping[str, str] = os.environ if env is None else env

    data_dir_raw = (source.get("PL_DATA_DIR") or "").strip()
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else Path.cwd() / ".ledger"

    backend = (source.get("PL_STORAGE_BACKEND") or "file").strip().lower()

    return Settings(
        storage_backend=backend,  # type: ignore[arg-type]  # validated in __post_init__
        data_dir=data_dir,
        database_url=(source.get("DATABASE_URL") or "").strip() or None,
        openai_api_key=(source.get("OPENAI_API_KEY") or "").strip() or None,
        openai_model=(source.get("PL_OPENAI_MODEL") or "").strip() or DEFAULT_MODEL,
        openai_timeout=_read_float(source, "PL_OPENAI_TIMEOUT", DEFAULT_TIMEOUT_SEC),
        import_max_workers=_read_int(
            source, "PL_IMPORT_MAX_WORKERS", DEFAULT_IMPORT_MAX_WORKERS
        ),
    )


__all__ = ["Settings", "StorageBackend", "load_settings"]
