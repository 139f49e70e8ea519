from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from shortlink_app.database.connection import Base
from shortlink_app.models.url import utcnow


class Click(Base):
    """
    Click event, appended once per redirect.

    Append-only: rows are never updated. Aggregates (windows, by-date,
    top user agents) are computed from this table.
    """
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    short_code = Column(String(20), ForeignKey("urls.short_code"), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    user_agent = Column(Text, nullable=True)
    referer = Column(Text, nullable=True)
    ip_address = Column(String(64), nullable=True)
