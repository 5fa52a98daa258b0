from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from interview_engine.api.deps import get_recruiter, get_scoring_engine
from interview_engine.core.database import get_db
from interview_engine.schemas.score import ScoreBreakdown, ScorePreview, ShortlistOverride
from interview_engine.services.report_builder import build_interview_report
from interview_engine.services.score_service import (
    get_score_breakdown,
    override_shortlist,
    preview_scores,
)
from interview_engine.services.scoring_engine import ScoringEngine
from interview_engine.services.session_service import authorize_participant, get_session

router = APIRouter()


@router.get("/scores/{session_id}", response_model=ScoreBreakdown)
def get_scores(
    session_id: str,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
):
    authorize_participant(get_session(db, session_id), recruiter)
    return get_score_breakdown(db, session_id)


@router.get("/scores/{session_id}/preview", response_model=ScorePreview)
def get_score_preview(
    session_id: str,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
    scoring_engine: ScoringEngine = Depends(get_scoring_engine),
):
    authorize_participant(get_session(db, session_id), recruiter)
    result = preview_scores(db, session_id, scoring_engine)
    return {"session_id": session_id, **result.to_dict()}


@router.patch("/scores/{session_id}/shortlist", response_model=ScoreBreakdown)
def update_shortlist(
    session_id: str,
    payload: ShortlistOverride,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
):
    override_shortlist(db, session_id, recruiter["id"], payload.status, payload.notes)
    return get_score_breakdown(db, session_id)


@router.get("/reports/{session_id}")
def get_final_report(
    session_id: str,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
):
    authorize_participant(get_session(db, session_id), recruiter)
    return build_interview_report(db, session_id)
