from sqlalchemy import Column, DateTime, String, Text

from app.db.session import Base
from app.utils.time import utcnow


class LocalStorageItem(Base):
    """One key of the client's local key/value store."""

    __tablename__ = "local_storage"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
