"""Row type backing the SQL key/value store."""

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON as SA_JSON

from symptomlog.db.session import Base


class KeyValueRecord(Base):
    __tablename__ = "kv_store"

    key = Column(Text, primary_key=True)
    value = Column(SA_JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
