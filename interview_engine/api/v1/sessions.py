from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from interview_engine.api.deps import (
    get_candidate,
    get_notifier,
    get_participant,
    get_question_engine,
    get_recruiter,
    get_scoring_engine,
)
from interview_engine.core.database import get_db
from interview_engine.schemas.session import (
    AnswerSubmit,
    AnswerSubmitted,
    SessionCreate,
    SessionCreated,
    SessionEnd,
    SessionStart,
    SessionState,
    SessionTerminate,
    SessionTransition,
    TimeRemaining,
)
from interview_engine.services import session_service
from interview_engine.services.notifier import Notifier
from interview_engine.services.question_engine import QuestionEngine
from interview_engine.services.scoring_engine import ScoringEngine

router = APIRouter()


def _transition_body(session) -> dict:
    return {
        "session_id": session.id,
        "status": session.status,
        "started_at": session.started_at,
        "ended_at": session.ended_at,
        "end_reason": session.end_reason,
    }


@router.post("/sessions", response_model=SessionCreated, status_code=status.HTTP_201_CREATED)
def create_interview_session(
    payload: SessionCreate,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
    question_engine: QuestionEngine = Depends(get_question_engine),
    notifier: Notifier = Depends(get_notifier),
):
    session, sent = session_service.schedule_session(
        db,
        recruiter_id=recruiter["id"],
        candidate_id=payload.candidate_id,
        question_engine=question_engine,
        notifier=notifier,
        duration_seconds=payload.duration_seconds,
        expires_in_hours=payload.expires_in_hours,
        valid_from=payload.valid_from,
        valid_until=payload.valid_until,
    )
    return {
        "session_id": session.id,
        "status": session.status,
        "interview_url": session_service.interview_url(session),
        "expires_at": session.expires_at,
        "valid_from": session.valid_from,
        "valid_until": session.valid_until,
        "invitation_sent": sent,
    }


@router.post("/sessions/{session_id}/start", response_model=SessionTransition)
def start_interview_session(
    session_id: str,
    request: Request,
    payload: SessionStart | None = None,
    candidate: dict = Depends(get_candidate),
    db: Session = Depends(get_db),
):
    session = session_service.start_session(
        db,
        session_id,
        candidate_id=candidate["id"],
        device_fingerprint=payload.device_fingerprint if payload else None,
        ip_address=request.client.host if request.client else None,
    )
    return _transition_body(session)


@router.get("/sessions/{session_id}", response_model=SessionState)
def get_interview_session(
    session_id: str,
    user: dict = Depends(get_participant),
    db: Session = Depends(get_db),
    scoring_engine: ScoringEngine = Depends(get_scoring_engine),
    notifier: Notifier = Depends(get_notifier),
):
    state = session_service.read_session(db, session_id, scoring_engine, notifier, actor=user)
    session = state["session"]
    answered = {a.question_id for a in session.answers}
    current = next((q for q in session.questions if q.id not in answered), None)
    return {
        **_transition_body(session),
        "duration_seconds": session.duration_seconds,
        "time_remaining": state["time_remaining"],
        "warnings": state["warnings"],
        "auto_submitted": state["auto_submitted"],
        "current_question": current,
        "questions_answered": len(answered),
    }


@router.get("/sessions/{session_id}/time-remaining", response_model=TimeRemaining)
def get_time_remaining(
    session_id: str,
    user: dict = Depends(get_participant),
    db: Session = Depends(get_db),
    scoring_engine: ScoringEngine = Depends(get_scoring_engine),
    notifier: Notifier = Depends(get_notifier),
):
    state = session_service.read_session(db, session_id, scoring_engine, notifier, actor=user)
    return {
        "session_id": session_id,
        "status": state["session"].status,
        "time_remaining": state["time_remaining"],
        "warnings": state["warnings"],
        "auto_submitted": state["auto_submitted"],
    }


@router.post("/sessions/{session_id}/answers", response_model=AnswerSubmitted)
def submit_interview_answer(
    session_id: str,
    payload: AnswerSubmit,
    candidate: dict = Depends(get_candidate),
    db: Session = Depends(get_db),
    question_engine: QuestionEngine = Depends(get_question_engine),
    scoring_engine: ScoringEngine = Depends(get_scoring_engine),
    notifier: Notifier = Depends(get_notifier),
):
    result = session_service.submit_answer(
        db,
        session_id,
        candidate_id=candidate["id"],
        question_id=payload.question_id,
        text=payload.answer,
        question_engine=question_engine,
        scoring_engine=scoring_engine,
        notifier=notifier,
    )
    return {
        "answer_id": result["answer"].id,
        "quality": result["analysis"]["quality"],
        "quality_score": result["analysis"]["score"],
        "next_question": result["next_question"],
        "progress": result["progress"],
    }


@router.post("/sessions/{session_id}/end", response_model=SessionTransition)
def end_interview_session(
    session_id: str,
    payload: SessionEnd | None = None,
    user: dict = Depends(get_participant),
    db: Session = Depends(get_db),
    scoring_engine: ScoringEngine = Depends(get_scoring_engine),
    notifier: Notifier = Depends(get_notifier),
):
    session, _ = session_service.end_session(
        db,
        session_id,
        reason=(payload.reason if payload else None) or "completed",
        scoring_engine=scoring_engine,
        notifier=notifier,
        actor=user,
    )
    return _transition_body(session)


@router.post("/sessions/{session_id}/terminate", response_model=SessionTransition)
def terminate_interview_session(
    session_id: str,
    payload: SessionTerminate,
    user: dict = Depends(get_participant),
    db: Session = Depends(get_db),
):
    session = session_service.terminate_session(
        db,
        session_id,
        reason=payload.reason,
        integrity_score=payload.integrity_score,
        violations=payload.violations,
        actor=user,
    )
    return _transition_body(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_interview_session(
    session_id: str,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
):
    session_service.delete_session(db, session_id, recruiter_id=recruiter["id"])
