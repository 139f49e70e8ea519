from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text
from shortlink_app.database.connection import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class URL(Base):
    """
    URL record: the source of truth for short code -> destination.

    short_code carries a unique constraint; it is the only thing that
    arbitrates two concurrent requests for the same custom alias.
    """
    __tablename__ = "urls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Note: unique=True automatically creates an index in SQLAlchemy
    short_code = Column(String(20), unique=True, nullable=False, index=True)
    original_url = Column(Text, nullable=False)
    click_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
