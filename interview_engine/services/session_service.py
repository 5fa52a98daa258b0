import logging
import math
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from interview_engine.core.config import settings
from interview_engine.core.errors import (
    AuthorizationError,
    NotFoundError,
    StateError,
    ValidationError,
)
from interview_engine.models.candidate import Candidate, Recruiter
from interview_engine.models.question import Answer, Question
from interview_engine.models.session import InterviewSession
from interview_engine.services.answer_analysis import analyze_answer_quality
from interview_engine.services.audit_service import record_audit
from interview_engine.services.notifier import Notifier
from interview_engine.services.question_engine import QuestionEngine, progress
from interview_engine.services.question_generators import GeneratedQuestion
from interview_engine.services.score_service import stage_score_record
from interview_engine.services.scoring_engine import ScoringEngine
from interview_engine.utils.enums import AuditAction, Role, SessionStatus
from interview_engine.utils.timeutils import as_naive_utc

logger = logging.getLogger(__name__)

TIMEOUT_REASON = "timeout"

# (threshold seconds, message); a warning is reported in the 5s band below each
TIME_WARNINGS = [
    (600, "10 minutes remaining"),
    (300, "5 minutes remaining"),
]
WARNING_BAND_SECONDS = 5


def get_session(db: Session, session_id: str) -> InterviewSession:
    session = db.query(InterviewSession).filter_by(id=session_id).first()
    if not session:
        raise NotFoundError("Session not found")
    return session


def authorize_participant(session: InterviewSession, actor: Optional[dict]) -> None:
    """The session's candidate or its recruiter. `None` is an internal caller."""
    if actor is None:
        return
    if actor.get("role") == Role.CANDIDATE.value and actor.get("id") == session.candidate_id:
        if actor.get("session_id") in (None, session.id):
            return
    if actor.get("role") == Role.RECRUITER.value and actor.get("id") == session.recruiter_id:
        return
    raise AuthorizationError("Not allowed to act on this session")


def _transition(
    db: Session,
    session: InterviewSession,
    allowed_from: tuple,
    to_status: SessionStatus,
    **fields,
) -> None:
    """Compare-and-swap on status; a lost race raises instead of overwriting."""
    values = {"status": to_status.value, "updated_at": datetime.utcnow(), **fields}
    updated = (
        db.query(InterviewSession)
        .filter(
            InterviewSession.id == session.id,
            InterviewSession.status.in_([s.value for s in allowed_from]),
        )
        .update(values, synchronize_session="fetch")
    )
    if updated != 1:
        db.rollback()
        db.refresh(session)
        raise StateError(f"Session cannot move from {session.status} to {to_status.value}")
    db.refresh(session)


def _question_from(generated: GeneratedQuestion, generated_from: Optional[str]) -> Question:
    return Question(
        id=str(uuid4()),
        text=generated.text,
        question_type=generated.question_type.value,
        difficulty=generated.difficulty.value,
        generated_from=generated_from,
        expected_answer=generated.expected_answer,
        resume_claim=generated.resume_claim,
        source=generated.source.value,
    )


def schedule_session(
    db: Session,
    recruiter_id: str,
    candidate_id: str,
    question_engine: QuestionEngine,
    notifier: Notifier,
    duration_seconds: Optional[int] = None,
    expires_in_hours: Optional[int] = None,
    valid_from: Optional[datetime] = None,
    valid_until: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> tuple:
    """Create a scheduled session with its first question. Returns (session, invitation_sent)."""
    now = now or datetime.utcnow()
    valid_from = as_naive_utc(valid_from)
    valid_until = as_naive_utc(valid_until)

    recruiter = db.query(Recruiter).filter_by(id=recruiter_id).first()
    if not recruiter:
        raise NotFoundError("Recruiter not found")
    candidate = db.query(Candidate).filter_by(id=candidate_id).first()
    if not candidate:
        raise NotFoundError("Candidate not found")

    if (valid_from is None) != (valid_until is None):
        raise ValidationError("valid_from and valid_until must be given together")
    if valid_from is not None and valid_from >= valid_until:
        raise ValidationError("valid_from must be before valid_until")

    if valid_from is not None:
        expires_at = valid_until
    else:
        expires_at = now + timedelta(hours=expires_in_hours or settings.DEFAULT_LINK_EXPIRY_HOURS)

    session = InterviewSession(
        id=str(uuid4()),
        candidate_id=candidate.id,
        recruiter_id=recruiter.id,
        access_token=str(uuid4()),
        status=SessionStatus.SCHEDULED.value,
        valid_from=valid_from,
        valid_until=valid_until,
        expires_at=expires_at,
        duration_seconds=duration_seconds or settings.DEFAULT_DURATION_SECONDS,
    )
    session.append_question(_question_from(question_engine.seed_question(candidate.profile()), None))

    db.add(session)
    record_audit(
        db,
        session.id,
        AuditAction.INTERVIEW_SCHEDULED,
        {"duration_seconds": session.duration_seconds},
        actor_id=recruiter.id,
    )
    db.commit()
    db.refresh(session)

    logger.info("Scheduled session %s for candidate %s", session.id, candidate.id)

    sent = _notify(
        notifier,
        "INTERVIEW_INVITATION",
        candidate.email,
        {
            "candidate_name": candidate.full_name,
            "recruiter_name": recruiter.full_name,
            "company": recruiter.company,
            "interview_url": interview_url(session),
            "expires_at": session.expires_at.isoformat() if session.expires_at else None,
        },
    )
    return session, sent


def interview_url(session: InterviewSession) -> str:
    return f"{settings.FRONTEND_URL}/interview/{session.access_token}"


def start_session(
    db: Session,
    session_id: str,
    candidate_id: str,
    device_fingerprint=None,
    ip_address: Optional[str] = None,
    now: Optional[datetime] = None,
) -> InterviewSession:
    session = get_session(db, session_id)
    if session.candidate_id != candidate_id:
        raise AuthorizationError("Session belongs to another candidate")
    if session.status != SessionStatus.SCHEDULED.value:
        raise StateError("Session not found or already started")

    now = now or datetime.utcnow()
    _transition(
        db,
        session,
        (SessionStatus.SCHEDULED,),
        SessionStatus.ACTIVE,
        started_at=now,
        ip_address=ip_address,
    )
    session.record_device_fingerprint(device_fingerprint)
    record_audit(
        db,
        session.id,
        AuditAction.INTERVIEW_STARTED,
        {"start_time": now.isoformat()},
        actor_id=candidate_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(session)

    logger.info("Session %s started", session.id)
    return session


def time_remaining(session: InterviewSession, now: Optional[datetime] = None) -> int:
    """Derived on read: max(0, duration - whole seconds elapsed since start)."""
    if session.status != SessionStatus.ACTIVE.value:
        if session.status == SessionStatus.SCHEDULED.value:
            return session.duration_seconds
        return 0
    now = now or datetime.utcnow()
    elapsed = math.floor((now - session.started_at).total_seconds())
    return max(0, session.duration_seconds - elapsed)


def time_warnings(remaining: int) -> list:
    return [
        message for threshold, message in TIME_WARNINGS
        if threshold - WARNING_BAND_SECONDS < remaining <= threshold
    ]


def _expire_if_due(
    db: Session,
    session: InterviewSession,
    scoring_engine: ScoringEngine,
    notifier: Notifier,
    now: datetime,
) -> bool:
    if session.status != SessionStatus.ACTIVE.value or time_remaining(session, now) > 0:
        return False
    try:
        end_session(db, session.id, TIMEOUT_REASON, scoring_engine, notifier, now=now)
    except StateError:
        # someone else ended it first
        db.refresh(session)
        return False
    logger.info("Session %s auto-submitted due to timeout", session.id)
    return True


def read_session(
    db: Session,
    session_id: str,
    scoring_engine: ScoringEngine,
    notifier: Notifier,
    actor: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Current session state. Reading an active session whose budget is spent
    completes it (reason=timeout) before returning.
    """
    now = now or datetime.utcnow()
    session = get_session(db, session_id)
    authorize_participant(session, actor)

    auto_submitted = _expire_if_due(db, session, scoring_engine, notifier, now)
    if auto_submitted:
        session = get_session(db, session_id)

    remaining = time_remaining(session, now)
    return {
        "session": session,
        "time_remaining": remaining,
        "warnings": time_warnings(remaining) if session.status == SessionStatus.ACTIVE.value else [],
        "auto_submitted": auto_submitted,
    }


def submit_answer(
    db: Session,
    session_id: str,
    candidate_id: str,
    question_id: str,
    text: str,
    question_engine: QuestionEngine,
    scoring_engine: ScoringEngine,
    notifier: Notifier,
    now: Optional[datetime] = None,
) -> dict:
    now = now or datetime.utcnow()
    session = get_session(db, session_id)
    if session.candidate_id != candidate_id:
        raise AuthorizationError("Session belongs to another candidate")

    if _expire_if_due(db, session, scoring_engine, notifier, now):
        raise StateError("Interview time has expired")
    if session.status != SessionStatus.ACTIVE.value:
        raise StateError("Answers are only accepted while the interview is active")

    question = next((q for q in session.questions if q.id == question_id), None)
    if question is None:
        raise NotFoundError("Question not found in this session")
    if any(a.question_id == question_id for a in session.answers):
        raise StateError("Question has already been answered")

    analysis = analyze_answer_quality(text)
    answer = Answer(
        id=str(uuid4()),
        question_id=question.id,
        text=text,
        quality=analysis["quality"],
        quality_score=analysis["score"],
        metrics=analysis["metrics"],
        submitted_at=now,
    )
    session.append_answer(answer)

    next_question = None
    if len(session.answers) < settings.MAX_QUESTIONS:
        generated = question_engine.next_question(
            previous_question=question.text,
            previous_answer=text,
            previous_quality=analysis["quality"],
            profile=session.candidate.profile(),
            history=[q.text for q in session.questions],
            used_claims=[q.resume_claim for q in session.questions if q.resume_claim],
        )
        if generated is not None:
            next_question = _question_from(generated, question.text)
            session.append_question(next_question)

    db.commit()
    db.refresh(session)

    return {
        "answer": answer,
        "next_question": next_question,
        "progress": progress(len(session.answers), len(session.questions)),
        "analysis": {"quality": analysis["quality"], "score": analysis["score"]},
    }


def end_session(
    db: Session,
    session_id: str,
    reason: Optional[str],
    scoring_engine: ScoringEngine,
    notifier: Notifier,
    actor: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> tuple:
    """Complete an active session and score it in the same transaction. Returns (session, score_record)."""
    now = now or datetime.utcnow()
    session = get_session(db, session_id)
    authorize_participant(session, actor)

    _transition(
        db,
        session,
        (SessionStatus.ACTIVE,),
        SessionStatus.COMPLETED,
        ended_at=now,
        end_reason=reason,
    )
    try:
        record = stage_score_record(db, session, scoring_engine)
        db.flush()
        record_audit(
            db,
            session.id,
            AuditAction.INTERVIEW_COMPLETED,
            {
                "reason": reason,
                "final_score": record.final_score,
                "shortlist_status": record.shortlist_status,
            },
            actor_id=actor.get("id") if actor else None,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(session)

    logger.info("Session %s completed (reason=%s)", session.id, reason)

    recruiter = session.recruiter
    _notify(
        notifier,
        "INTERVIEW_COMPLETED",
        recruiter.email if recruiter else "",
        {
            "session_id": session.id,
            "candidate_name": session.candidate.full_name if session.candidate else None,
            "final_score": record.final_score,
            "shortlist_status": record.shortlist_status,
        },
    )
    return session, record


def terminate_session(
    db: Session,
    session_id: str,
    reason: Optional[str],
    integrity_score: Optional[int] = None,
    violations: Optional[list] = None,
    actor: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> InterviewSession:
    now = now or datetime.utcnow()
    session = get_session(db, session_id)
    authorize_participant(session, actor)

    _transition(
        db,
        session,
        (SessionStatus.SCHEDULED, SessionStatus.ACTIVE),
        SessionStatus.TERMINATED,
        ended_at=now,
        end_reason=reason,
    )
    record_audit(
        db,
        session.id,
        AuditAction.INTERVIEW_TERMINATED,
        {
            "reason": reason,
            "integrity_score": integrity_score,
            "violation_count": len(violations or []),
            "violations": violations or [],
        },
        actor_id=actor.get("id") if actor else None,
    )
    db.commit()
    db.refresh(session)

    logger.warning("Session %s terminated: %s", session.id, reason)
    return session


def delete_session(db: Session, session_id: str, recruiter_id: str) -> None:
    session = get_session(db, session_id)
    if session.recruiter_id != recruiter_id:
        raise AuthorizationError("Session belongs to another recruiter")
    db.delete(session)
    db.commit()
    logger.info("Session %s deleted by recruiter %s", session_id, recruiter_id)


def _notify(notifier: Notifier, event: str, recipient: str, payload: dict) -> bool:
    try:
        return notifier.notify(event, recipient, payload)
    except Exception as e:
        logger.warning("Notifier raised for %s to %s: %s", event, recipient, e)
        return False
