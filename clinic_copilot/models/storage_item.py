from sqlalchemy import Column, String, DateTime, Text
from datetime import datetime
from clinic_copilot.database.base import Base


class StorageItem(Base):
    """
    Key/value rows backing the record store.
    One row per storage key; the value is an opaque serialized blob.
    """

    __tablename__ = "storage_items"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
