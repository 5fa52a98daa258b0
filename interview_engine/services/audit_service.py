from sqlalchemy.orm import Session
from uuid import uuid4
from interview_engine.models.audit_log import AuditLog
from interview_engine.utils.enums import AuditAction


def record_audit(
    db: Session,
    session_id: str,
    action: AuditAction,
    details: dict | None = None,
    actor_id: str | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Stage an audit row; the caller's commit persists it with the transition."""
    entry = AuditLog(
        id=str(uuid4()),
        session_id=session_id,
        actor_id=actor_id,
        action=action.value,
        details=details or {},
        ip_address=ip_address,
    )
    db.add(entry)
    return entry


def list_audit(db: Session, session_id: str) -> list[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.session_id == session_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )
