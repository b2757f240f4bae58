"""Database models."""
from datetime import datetime

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class KeyValueRecord(Base):
    """A single JSON value stored under a string key."""

    __tablename__ = "kv_records"

    key = Column(String, primary_key=True, index=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
