from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from interview_engine.core.config import settings
from interview_engine.core.database import Base
from interview_engine.core.errors import StateError
from interview_engine.utils.enums import SessionStatus

# related mappers must be registered before the relationships below resolve
from interview_engine.models.candidate import Candidate, Recruiter  # noqa: F401
from interview_engine.models.question import Question, Answer  # noqa: F401
from interview_engine.models.violation import Violation  # noqa: F401
from interview_engine.models.score_record import ScoreRecord  # noqa: F401
from interview_engine.models.audit_log import AuditLog  # noqa: F401


class InterviewSession(Base):
    __tablename__ = "interview_sessions"

    id = Column(String, primary_key=True, index=True)
    candidate_id = Column(String, ForeignKey("candidates.id"), index=True, nullable=False)
    recruiter_id = Column(String, ForeignKey("recruiters.id"), index=True, nullable=False)
    access_token = Column(String, unique=True, index=True, nullable=False)

    status = Column(String, default=SessionStatus.SCHEDULED.value)  # scheduled | active | completed | terminated

    # either a window (valid_from/valid_until) or a single expiry
    valid_from = Column(DateTime, nullable=True)
    valid_until = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    duration_seconds = Column(Integer, default=1800)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    end_reason = Column(String, nullable=True)

    device_fingerprint = Column(JSON, nullable=True)
    ip_address = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    candidate = relationship("Candidate")
    recruiter = relationship("Recruiter")

    questions = relationship(
        "Question",
        back_populates="session",
        order_by="Question.sequence",
        cascade="all, delete-orphan",
    )
    answers = relationship(
        "Answer",
        back_populates="session",
        order_by="Answer.sequence",
        cascade="all, delete-orphan",
    )
    violations = relationship("Violation", cascade="all, delete-orphan")
    score_record = relationship("ScoreRecord", uselist=False, cascade="all, delete-orphan")
    audit_logs = relationship("AuditLog", cascade="all, delete-orphan")

    @property
    def has_time_window(self) -> bool:
        return self.valid_from is not None and self.valid_until is not None

    def append_question(self, question) -> None:
        if len(self.questions) >= settings.MAX_QUESTIONS:
            raise StateError(f"Session already holds {settings.MAX_QUESTIONS} questions")
        question.sequence = len(self.questions) + 1
        self.questions.append(question)

    def append_answer(self, answer) -> None:
        if len(self.answers) >= len(self.questions):
            raise StateError("Every question has already been answered")
        answer.sequence = len(self.answers) + 1
        self.answers.append(answer)

    def record_device_fingerprint(self, fingerprint) -> bool:
        """Write-once; returns True only when the fingerprint was stored."""
        if self.device_fingerprint is not None or fingerprint is None:
            return False
        self.device_fingerprint = fingerprint
        return True
