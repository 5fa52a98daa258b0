from pydantic import BaseModel
from interview_engine.utils.enums import ShortlistStatus


class ScorePart(BaseModel):
    score: int
    weight: float
    contribution: float


class ScoreBreakdown(BaseModel):
    session_id: str
    technical: ScorePart
    problem_solving: ScorePart
    communication: ScorePart
    resume_authenticity: ScorePart
    integrity_risk: ScorePart
    final: int
    computed_status: ShortlistStatus
    shortlist_status: ShortlistStatus
    overridden: bool
    recruiter_notes: str | None


class ScorePreview(BaseModel):
    session_id: str
    technical: int
    problem_solving: int
    communication: int
    resume_authenticity: int
    integrity_risk: int
    final: int
    shortlist_status: ShortlistStatus
    has_critical: bool
    evaluations: list[dict]


class ShortlistOverride(BaseModel):
    status: ShortlistStatus
    notes: str | None = None
