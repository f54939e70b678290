"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the key-value blob table used by ``personal_ledger``.
"""

from .blobs import Base, KvBlob

__all__ = [
    "Base",
    "KvBlob",
]
