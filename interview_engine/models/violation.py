from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, JSON
from interview_engine.core.database import Base
from datetime import datetime


class Violation(Base):
    """A single proctoring anomaly. Rows are inserted once and never updated."""

    __tablename__ = "violations"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("interview_sessions.id", ondelete="CASCADE"), index=True)

    violation_type = Column(String, index=True)
    severity = Column(String)
    impact_weight = Column(Integer, default=0)
    message = Column(Text, nullable=True)
    source = Column(String, default="api")  # api | realtime
    details = Column(JSON, nullable=True)
    screenshot_ref = Column(String, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
