from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from datetime import datetime
from interview_engine.core.database import Base


class ScoreRecord(Base):
    __tablename__ = "score_records"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("interview_sessions.id", ondelete="CASCADE"), unique=True, index=True)

    technical_score = Column(Integer)
    problem_solving_score = Column(Integer)
    communication_score = Column(Integer)
    resume_authenticity_score = Column(Integer)
    integrity_risk_score = Column(Integer)
    final_score = Column(Integer)
    shortlist_status = Column(String)

    # recruiter override; the computed decision above is never rewritten
    override_status = Column(String, nullable=True)
    recruiter_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def effective_status(self) -> str:
        return self.override_status or self.shortlist_status
