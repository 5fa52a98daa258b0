import logging
from sqlalchemy.orm import Session
from uuid import uuid4

from interview_engine.core.errors import AuthorizationError, NotFoundError, StateError
from interview_engine.models.score_record import ScoreRecord
from interview_engine.models.session import InterviewSession
from interview_engine.services.audit_service import record_audit
from interview_engine.services.integrity_engine import load_violations
from interview_engine.services.scoring_config import DEFAULT_SCORE_WEIGHTS, ScoreWeights
from interview_engine.services.scoring_engine import ScoreResult, ScoringEngine
from interview_engine.utils.enums import AuditAction, SessionStatus, ShortlistStatus

logger = logging.getLogger(__name__)


def get_score_record(db: Session, session_id: str) -> ScoreRecord | None:
    return db.query(ScoreRecord).filter(ScoreRecord.session_id == session_id).first()


def compute_scores(db: Session, session: InterviewSession, engine: ScoringEngine) -> ScoreResult:
    """Fresh computation from the current questions, answers and violation log."""
    violations = load_violations(db, session.id)
    return engine.score(list(session.questions), list(session.answers), violations)


def stage_score_record(
    db: Session,
    session: InterviewSession,
    engine: ScoringEngine,
) -> ScoreRecord:
    """
    Compute and add the ScoreRecord without committing. If the session was
    already scored the existing record is returned unchanged.
    """
    existing = get_score_record(db, session.id)
    if existing:
        return existing

    result = compute_scores(db, session, engine)
    record = ScoreRecord(
        id=str(uuid4()),
        session_id=session.id,
        technical_score=result.technical,
        problem_solving_score=result.problem_solving,
        communication_score=result.communication,
        resume_authenticity_score=result.resume_authenticity,
        integrity_risk_score=result.integrity_risk,
        final_score=result.final,
        shortlist_status=result.shortlist_status,
    )
    db.add(record)

    logger.info(
        "Scored session %s: final=%s risk=%s status=%s",
        session.id, result.final, result.integrity_risk, result.shortlist_status,
    )
    return record


def preview_scores(db: Session, session_id: str, engine: ScoringEngine) -> ScoreResult:
    session = db.query(InterviewSession).filter_by(id=session_id).first()
    if not session:
        raise NotFoundError("Session not found")
    if session.status != SessionStatus.COMPLETED.value:
        raise StateError("Only completed sessions can be scored")
    return compute_scores(db, session, engine)


def get_score_breakdown(
    db: Session,
    session_id: str,
    weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS,
) -> dict:
    record = get_score_record(db, session_id)
    if not record:
        raise NotFoundError("Scores not found")

    def part(score, weight):
        return {"score": score, "weight": weight, "contribution": round(score * weight, 2)}

    return {
        "session_id": session_id,
        "technical": part(record.technical_score, weights.technical),
        "problem_solving": part(record.problem_solving_score, weights.problem_solving),
        "communication": part(record.communication_score, weights.communication),
        "resume_authenticity": part(record.resume_authenticity_score, weights.resume_authenticity),
        "integrity_risk": part(record.integrity_risk_score, -weights.integrity_risk),
        "final": record.final_score,
        "computed_status": record.shortlist_status,
        "shortlist_status": record.effective_status,
        "overridden": record.override_status is not None,
        "recruiter_notes": record.recruiter_notes,
    }


def override_shortlist(
    db: Session,
    session_id: str,
    recruiter_id: str,
    status: ShortlistStatus,
    notes: str | None = None,
) -> ScoreRecord:
    """Recruiter decision on top of the computed one. Does not rescore."""
    session = db.query(InterviewSession).filter_by(id=session_id).first()
    if not session:
        raise NotFoundError("Session not found")
    if session.recruiter_id != recruiter_id:
        raise AuthorizationError("Session belongs to another recruiter")

    record = get_score_record(db, session_id)
    if not record:
        raise NotFoundError("Scores not found")

    previous = record.effective_status
    record.override_status = ShortlistStatus(status).value
    record.recruiter_notes = notes
    record_audit(
        db,
        session_id,
        AuditAction.SHORTLIST_OVERRIDDEN,
        {"from": previous, "to": record.override_status, "notes": notes},
        actor_id=recruiter_id,
    )
    db.commit()
    db.refresh(record)
    return record
