from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from interview_engine.core.database import get_db
from interview_engine.core.security import create_access_token
from interview_engine.schemas.session import CandidateLoginRequest, CandidateLoginResponse
from interview_engine.services.access_validator import validate_access_token
from interview_engine.utils.enums import Role

router = APIRouter()


@router.post("/auth/candidate-login", response_model=CandidateLoginResponse)
def candidate_login(
    payload: CandidateLoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    session = validate_access_token(
        db,
        payload.token,
        device_fingerprint=payload.device_fingerprint,
        ip_address=request.client.host if request.client else None,
    )
    token = create_access_token(session.candidate_id, Role.CANDIDATE.value, session_id=session.id)
    return {
        "access_token": token,
        "session_id": session.id,
        "candidate_id": session.candidate_id,
        "candidate_name": session.candidate.full_name,
        "duration_seconds": session.duration_seconds,
    }
