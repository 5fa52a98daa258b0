from datetime import datetime, timedelta

import pytest

from interview_engine.core.errors import LinkValidationError
from interview_engine.models.audit_log import AuditLog
from interview_engine.services.access_validator import validate_access_token
from interview_engine.utils.enums import AuditAction, SessionStatus


def _set_window(db, session, valid_from, valid_until):
    session.valid_from = valid_from
    session.valid_until = valid_until
    session.expires_at = valid_until
    db.commit()


def test_valid_token_returns_session_and_logs_login(db, scheduled_session):
    session = validate_access_token(db, scheduled_session.access_token, ip_address="10.0.0.1")

    assert session.id == scheduled_session.id
    logins = db.query(AuditLog).filter_by(session_id=session.id, action=AuditAction.CANDIDATE_LOGIN.value).all()
    assert len(logins) == 1
    assert logins[0].ip_address == "10.0.0.1"


def test_unknown_token_is_invalid_link(db, scheduled_session):
    with pytest.raises(LinkValidationError) as exc:
        validate_access_token(db, "not-a-token")
    assert exc.value.code == "INVALID_LINK"
    assert exc.value.status_code == 401


def test_token_of_started_session_is_invalid_link(db, active_session):
    with pytest.raises(LinkValidationError) as exc:
        validate_access_token(db, active_session.access_token)
    assert exc.value.code == "INVALID_LINK"


def test_window_not_yet_active_echoes_valid_from(db, scheduled_session):
    now = datetime(2030, 1, 1, 12, 0, 0)
    valid_from = now + timedelta(hours=1)
    _set_window(db, scheduled_session, valid_from, valid_from + timedelta(hours=2))

    with pytest.raises(LinkValidationError) as exc:
        validate_access_token(db, scheduled_session.access_token, now=now)

    assert exc.value.code == "NOT_YET_ACTIVE"
    assert exc.value.valid_from == valid_from
    assert exc.value.to_dict()["valid_from"] == valid_from.isoformat()


def test_window_edges(db, scheduled_session):
    valid_from = datetime(2030, 1, 1, 9, 0, 0)
    valid_until = datetime(2030, 1, 1, 11, 0, 0)
    _set_window(db, scheduled_session, valid_from, valid_until)

    with pytest.raises(LinkValidationError) as exc:
        validate_access_token(db, scheduled_session.access_token, now=valid_until + timedelta(seconds=1))
    assert exc.value.code == "WINDOW_EXPIRED"
    assert exc.value.to_dict()["valid_until"] == valid_until.isoformat()

    session = validate_access_token(db, scheduled_session.access_token, now=valid_until - timedelta(seconds=1))
    assert session.status == SessionStatus.SCHEDULED.value


def test_single_expiry(db, scheduled_session):
    expires_at = scheduled_session.expires_at

    with pytest.raises(LinkValidationError) as exc:
        validate_access_token(db, scheduled_session.access_token, now=expires_at + timedelta(seconds=1))
    assert exc.value.code == "EXPIRED"
    assert exc.value.expires_at == expires_at


def test_device_fingerprint_is_write_once(db, scheduled_session):
    validate_access_token(db, scheduled_session.access_token, device_fingerprint={"ua": "first"})
    validate_access_token(db, scheduled_session.access_token, device_fingerprint={"ua": "second"})

    db.refresh(scheduled_session)
    assert scheduled_session.device_fingerprint == {"ua": "first"}


def test_device_mismatch_only_when_enforced(db, scheduled_session):
    validate_access_token(db, scheduled_session.access_token, device_fingerprint={"ua": "first"})

    with pytest.raises(LinkValidationError) as exc:
        validate_access_token(
            db, scheduled_session.access_token,
            device_fingerprint={"ua": "other"},
            enforce_fingerprint=True,
        )
    assert exc.value.code == "DEVICE_MISMATCH"
    assert exc.value.status_code == 403
