from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from datetime import datetime
from interview_engine.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("interview_sessions.id", ondelete="CASCADE"), index=True)
    actor_id = Column(String, nullable=True)

    action = Column(String, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
