from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any
from interview_engine.utils.enums import SessionStatus, QuestionType, Difficulty


class CandidateLoginRequest(BaseModel):
    token: str
    device_fingerprint: dict[str, Any] | None = None


class CandidateLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session_id: str
    candidate_id: str
    candidate_name: str
    duration_seconds: int


class SessionCreate(BaseModel):
    candidate_id: str
    duration_seconds: int | None = Field(default=None, gt=0)
    expires_in_hours: int | None = Field(default=None, gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None


class SessionCreated(BaseModel):
    session_id: str
    status: SessionStatus
    interview_url: str
    expires_at: datetime | None
    valid_from: datetime | None
    valid_until: datetime | None
    invitation_sent: bool


class SessionStart(BaseModel):
    device_fingerprint: dict[str, Any] | None = None


class QuestionResponse(BaseModel):
    id: str
    sequence: int
    text: str
    question_type: QuestionType
    difficulty: Difficulty

    class Config:
        from_attributes = True


class SessionState(BaseModel):
    session_id: str
    status: SessionStatus
    started_at: datetime | None
    ended_at: datetime | None
    end_reason: str | None
    duration_seconds: int
    time_remaining: int
    warnings: list[str] = []
    auto_submitted: bool = False
    current_question: QuestionResponse | None = None
    questions_answered: int


class TimeRemaining(BaseModel):
    session_id: str
    status: SessionStatus
    time_remaining: int
    warnings: list[str] = []
    auto_submitted: bool = False


class AnswerSubmit(BaseModel):
    question_id: str
    answer: str = Field(min_length=1)


class AnswerSubmitted(BaseModel):
    answer_id: str
    quality: str
    quality_score: int
    next_question: QuestionResponse | None
    progress: dict[str, int]


class SessionEnd(BaseModel):
    reason: str | None = None


class SessionTerminate(BaseModel):
    reason: str
    integrity_score: int | None = None
    violations: list[dict[str, Any]] | None = None


class SessionTransition(BaseModel):
    session_id: str
    status: SessionStatus
    started_at: datetime | None = None
    ended_at: datetime | None = None
    end_reason: str | None = None
