from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from interview_engine.core.database import Base
from interview_engine.utils.enums import QuestionType, QuestionSource


class Question(Base):
    __tablename__ = "interview_questions"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("interview_sessions.id", ondelete="CASCADE"), index=True)
    sequence = Column(Integer, nullable=False)

    text = Column(Text, nullable=False)
    question_type = Column(String, default=QuestionType.TECHNICAL.value)
    difficulty = Column(String, nullable=False)
    generated_from = Column(Text, nullable=True)
    expected_answer = Column(Text, nullable=True)
    resume_claim = Column(Text, nullable=True)
    source = Column(String, default=QuestionSource.SEED.value)

    created_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("InterviewSession", back_populates="questions")


class Answer(Base):
    __tablename__ = "interview_answers"

    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("interview_sessions.id", ondelete="CASCADE"), index=True)
    question_id = Column(String, ForeignKey("interview_questions.id", ondelete="CASCADE"), unique=True)
    sequence = Column(Integer, nullable=False)

    text = Column(Text, nullable=False)
    quality = Column(String, nullable=True)
    quality_score = Column(Integer, nullable=True)
    metrics = Column(JSON, nullable=True)

    submitted_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("InterviewSession", back_populates="answers")
