from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Key-value blobs: kv_blobs
# ---------------------------


class KvBlob(Base):
    __tablename__ = "kv_blobs"

    # Fixed application keys such as "fin-ai-transactions".
    key: Mapped[str] = mapped_column(String, primary_key=True)
    # Serialized JSON document. Stored as text; readers parse and validate.
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
