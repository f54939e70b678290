"""Named-blob persistence backends for the ledger.

A blob store maps a fixed string key to one serialized document. The ledger
keeps its whole transaction list under a single key and rewrites it on every
mutation, so the contract is deliberately tiny:

- ``read(key)`` returns the stored text or ``None`` when the key is absent.
- ``write(key, text)`` replaces the stored text.

Backends raise :class:`~personal_ledger.errors.StorageError` on I/O failure;
interpreting the text (JSON, validation) is the caller's job.

File layout for :class:`JsonFileBlobStore` (relative to its root)::

    <root>/<key>.json

Atomicity: writes target ``<key>.json.tmp`` first and then ``os.replace``
into place.
"""

from __future__ import annotations

import os
import re
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .errors import StorageError
from .logging_setup import get_logger

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")

_logger = get_logger("personal_ledger.storage")


def _validate_key(key: str) -> str:
    """Reject keys that could escape the store root or collide oddly."""

    if not _KEY_RE.fullmatch(key):
        raise ValueError(
            f"Invalid storage key {key!r}: use letters, digits, '.', '_' or '-' "
            "(max 128 chars, must not start with punctuation)"
        )
    return key


class BlobStore(Protocol):
    def read(self, key: str) -> str | None: ...

    def write(self, key: str, text: str) -> None: ...


class MemoryBlobStore:
    """Process-local store; contents vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._blobs.get(_validate_key(key))

    def write(self, key: str, text: str) -> None:
        with self._lock:
            self._blobs[_validate_key(key)] = text


class JsonFileBlobStore:
    """One UTF-8 file per key under ``root``."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root).expanduser().resolve()

    def path_for(self, key: str) -> Path:
        return self.root / f"{_validate_key(key)}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"failed to read {path}: {e}") from e

    def write(self, key: str, text: str) -> None:
        path = self.path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8", newline="\n") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            # Leave any previous complete file untouched.
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                _logger.debug("storage:tmp_cleanup_failed path=%s", tmp)
            raise StorageError(f"failed to write {path}: {e}") from e
        _logger.debug("storage:file_written path=%s bytes=%d", path, len(text))


class SqlBlobStore:
    """Key-value rows in the ``kv_blobs`` table via SQLAlchemy.

    ``create_schema=True`` creates the table from ORM metadata on first use,
    which suits a local SQLite file. Shared databases should be migrated with
    Alembic (``libs/db/alembic``) and opened with ``create_schema=False``.
    """

    def __init__(self, database_url: str, *, create_schema: bool = True) -> None:
        self.database_url = database_url
        self._create_schema = create_schema
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        if self._schema_ready or not self._create_schema:
            return
        from db.client import ensure_schema

        if self.database_url.startswith("sqlite") and "///" in self.database_url:
            db_path = self.database_url.split("///", 1)[1]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        ensure_schema(database_url=self.database_url)
        self._schema_ready = True

    def read(self, key: str) -> str | None:
        from db.client import session_scope
        from db.models.blobs import KvBlob
        from sqlalchemy.exc import SQLAlchemyError

        _validate_key(key)
        try:
            self._ensure_schema()
            with session_scope(database_url=self.database_url) as session:
                row = session.get(KvBlob, key)
                return None if row is None else row.value
        except SQLAlchemyError as e:
            raise StorageError(f"failed to read blob {key!r}: {e}") from e

    def write(self, key: str, text: str) -> None:
        from db.client import session_scope
        from db.models.blobs import KvBlob
        from sqlalchemy.exc import SQLAlchemyError

        _validate_key(key)
        try:
            self._ensure_schema()
            with session_scope(database_url=self.database_url) as session:
                # Portable upsert: SQLite and Postgres both honor merge by PK.
                session.merge(KvBlob(key=key, value=text, updated_at=datetime.now(UTC)))
        except SQLAlchemyError as e:
            raise StorageError(f"failed to write blob {key!r}: {e}") from e


__all__ = [
    "BlobStore",
    "JsonFileBlobStore",
    "MemoryBlobStore",
    "SqlBlobStore",
]
