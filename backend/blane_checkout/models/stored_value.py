"""Server-side key-value rows backing TransactionStore (one row per persisted key)."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from blane_checkout.db.base import Base


class StoredValue(Base):
    __tablename__ = "checkout_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
