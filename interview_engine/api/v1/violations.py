from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from interview_engine.api.deps import get_participant, get_recruiter, get_room_manager
from interview_engine.core.database import get_db
from interview_engine.schemas.violation import (
    IntegrityResponse,
    ViolationCreate,
    ViolationIngested,
    ViolationResponse,
)
from interview_engine.services.realtime import RoomManager, recruiter_room, violation_event
from interview_engine.services.session_service import authorize_participant, get_session
from interview_engine.services.violation_service import get_integrity, list_violations, record_violation
from interview_engine.utils.enums import ViolationSource

router = APIRouter()


@router.post("/violations", response_model=ViolationIngested, status_code=status.HTTP_201_CREATED)
async def ingest_violation(
    violation: ViolationCreate,
    user: dict = Depends(get_participant),
    db: Session = Depends(get_db),
    rooms: RoomManager = Depends(get_room_manager),
):
    authorize_participant(get_session(db, violation.session_id), user)
    saved, integrity = record_violation(db, violation, source=ViolationSource.API)
    await rooms.broadcast(recruiter_room(saved.session_id), "violation", violation_event(saved, integrity))
    return {
        "violation_id": saved.id,
        "session_id": saved.session_id,
        "integrity_score": integrity["integrity_score"],
        "risk_level": integrity["risk_level"],
    }


@router.get("/sessions/{session_id}/violations", response_model=list[ViolationResponse])
def get_session_violations(
    session_id: str,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
):
    authorize_participant(get_session(db, session_id), recruiter)
    return list_violations(db, session_id)


@router.get("/sessions/{session_id}/integrity", response_model=IntegrityResponse)
def get_session_integrity(
    session_id: str,
    recruiter: dict = Depends(get_recruiter),
    db: Session = Depends(get_db),
):
    authorize_participant(get_session(db, session_id), recruiter)
    return get_integrity(db, session_id)
