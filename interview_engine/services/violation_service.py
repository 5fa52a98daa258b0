import logging
from datetime import datetime
from uuid import uuid4

from sqlalchemy.orm import Session

from interview_engine.core.errors import NotFoundError
from interview_engine.models.session import InterviewSession
from interview_engine.models.violation import Violation
from interview_engine.schemas.violation import ViolationCreate
from interview_engine.services.audit_service import record_audit
from interview_engine.services.integrity_engine import (
    calculate_integrity_for_session,
    load_violations,
)
from interview_engine.services.scoring_config import DEFAULT_SEVERITY_WEIGHTS, SeverityWeights
from interview_engine.utils.enums import AuditAction, ViolationSource
from interview_engine.utils.timeutils import as_naive_utc

logger = logging.getLogger(__name__)


def record_violation(
    db: Session,
    violation: ViolationCreate,
    source: ViolationSource = ViolationSource.API,
    weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS,
):
    """
    Append one violation and return it with the freshly recomputed
    integrity summary. Accepted for any existing session, whatever its
    status, so late-arriving signals are not lost.
    """
    session = (
        db.query(InterviewSession)
        .filter(InterviewSession.id == violation.session_id)
        .first()
    )
    if not session:
        raise NotFoundError("Session not found")

    db_violation = Violation(
        id=str(uuid4()),
        session_id=session.id,
        violation_type=violation.violation_type.value,
        severity=violation.severity.value,
        impact_weight=weights.weight(violation.severity),
        message=violation.message,
        source=ViolationSource(source).value,
        details=violation.details,
        screenshot_ref=violation.screenshot_ref,
        timestamp=as_naive_utc(violation.timestamp) or datetime.utcnow(),
    )
    db.add(db_violation)
    record_audit(
        db,
        session.id,
        AuditAction.VIOLATION_LOGGED,
        {
            "violation_id": db_violation.id,
            "violation_type": db_violation.violation_type,
            "severity": db_violation.severity,
            "source": db_violation.source,
        },
        actor_id=session.candidate_id,
    )
    db.commit()
    db.refresh(db_violation)

    integrity = calculate_integrity_for_session(db, session.id, weights)

    logger.info(
        "Violation %s (%s) on session %s via %s, integrity now %s",
        db_violation.violation_type, db_violation.severity, session.id,
        db_violation.source, integrity["integrity_score"],
    )
    return db_violation, integrity


def list_violations(db: Session, session_id: str) -> list[Violation]:
    if not db.query(InterviewSession.id).filter(InterviewSession.id == session_id).first():
        raise NotFoundError("Session not found")
    return load_violations(db, session_id)


def get_integrity(
    db: Session,
    session_id: str,
    weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS,
) -> dict:
    if not db.query(InterviewSession.id).filter(InterviewSession.id == session_id).first():
        raise NotFoundError("Session not found")
    return calculate_integrity_for_session(db, session_id, weights)
