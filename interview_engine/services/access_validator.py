import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from interview_engine.core.config import settings
from interview_engine.core.errors import LinkValidationError
from interview_engine.models.session import InterviewSession
from interview_engine.services.audit_service import record_audit
from interview_engine.utils.enums import AuditAction, LinkRejection, SessionStatus

logger = logging.getLogger(__name__)


def validate_access_token(
    db: Session,
    token: str,
    device_fingerprint=None,
    ip_address: Optional[str] = None,
    now: Optional[datetime] = None,
    enforce_fingerprint: Optional[bool] = None,
) -> InterviewSession:
    """
    Resolve a one-time interview link to its scheduled session.

    Checks run in order: the token must belong to a scheduled session, then
    the time window (if the session has one) or the single expiry. Raises
    LinkValidationError carrying the boundary that was violated.
    """
    now = now or datetime.utcnow()
    if enforce_fingerprint is None:
        enforce_fingerprint = settings.ENFORCE_DEVICE_FINGERPRINT

    session = (
        db.query(InterviewSession)
        .filter(
            InterviewSession.access_token == token,
            InterviewSession.status == SessionStatus.SCHEDULED.value,
        )
        .first()
    )
    if not session:
        raise LinkValidationError(LinkRejection.INVALID_LINK.value, "Invalid or expired interview link")

    if session.has_time_window:
        if now < session.valid_from:
            raise LinkValidationError(
                LinkRejection.NOT_YET_ACTIVE.value,
                f"Interview link is not yet active. Please try again after {session.valid_from.isoformat()}",
                valid_from=session.valid_from,
            )
        if now > session.valid_until:
            raise LinkValidationError(
                LinkRejection.WINDOW_EXPIRED.value,
                "Interview link has expired. The interview window was from "
                f"{session.valid_from.isoformat()} to {session.valid_until.isoformat()}",
                valid_until=session.valid_until,
            )
    elif session.expires_at is not None and now > session.expires_at:
        raise LinkValidationError(
            LinkRejection.EXPIRED.value,
            "Interview link has expired",
            expires_at=session.expires_at,
        )

    if (
        enforce_fingerprint
        and session.device_fingerprint is not None
        and device_fingerprint != session.device_fingerprint
    ):
        raise LinkValidationError(
            LinkRejection.DEVICE_MISMATCH.value,
            "This interview has already been accessed from another device",
        )

    session.record_device_fingerprint(device_fingerprint)
    record_audit(
        db,
        session.id,
        AuditAction.CANDIDATE_LOGIN,
        {"device_fingerprint": device_fingerprint},
        actor_id=session.candidate_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(session)

    logger.info("Candidate %s logged into session %s", session.candidate_id, session.id)
    return session
