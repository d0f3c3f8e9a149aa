"""
Persistence model for the platform key-value store.

Every value written here by the application is an encrypted payload envelope
produced by the secure object store; legacy rows may still hold plaintext
JSON until they are migrated on first read.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from clinic_safety.models.database import Base


class KeyValueRecord(Base):
    __tablename__ = "kv_records"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False, comment="Encrypted payload JSON (or legacy plaintext)")
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
