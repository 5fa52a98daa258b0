from datetime import datetime, timedelta

import pytest
from starlette.websockets import WebSocketDisconnect

from interview_engine.models.score_record import ScoreRecord
from interview_engine.utils.enums import Role

from conftest import bearer, minutes_ago


def _login(client, session):
    response = client.post("/api/v1/auth/candidate-login", json={
        "token": session.access_token,
        "device_fingerprint": {"ua": "pytest-browser"},
    })
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_recruiter_schedules_session(client, candidate, recruiter_headers, notifier):
    response = client.post("/api/v1/sessions", json={"candidate_id": candidate.id}, headers=recruiter_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "scheduled"
    assert body["invitation_sent"] is True
    assert "/interview/" in body["interview_url"]
    assert notifier.sent[0][0] == "INTERVIEW_INVITATION"


def test_candidate_cannot_schedule(client, candidate, candidate_headers):
    response = client.post("/api/v1/sessions", json={"candidate_id": candidate.id}, headers=candidate_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "NOT_AUTHORIZED"


def test_missing_token_is_unauthorized(client, scheduled_session):
    response = client.get(f"/api/v1/sessions/{scheduled_session.id}")
    assert response.status_code == 401
    assert response.json()["error"] == "MISSING_TOKEN"


def test_expired_bearer_token(client, scheduled_session, candidate):
    headers = bearer(candidate.id, Role.CANDIDATE, scheduled_session.id, expires_delta=timedelta(seconds=-5))
    response = client.get(f"/api/v1/sessions/{scheduled_session.id}", headers=headers)
    assert response.status_code == 401
    assert response.json()["error"] == "TOKEN_EXPIRED"


def test_login_with_bad_link(client, scheduled_session):
    response = client.post("/api/v1/auth/candidate-login", json={"token": "bogus"})
    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_LINK"


def test_login_before_window_echoes_valid_from(client, db, scheduled_session):
    valid_from = datetime.utcnow() + timedelta(hours=2)
    scheduled_session.valid_from = valid_from
    scheduled_session.valid_until = valid_from + timedelta(hours=1)
    db.commit()

    response = client.post("/api/v1/auth/candidate-login", json={"token": scheduled_session.access_token})

    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "NOT_YET_ACTIVE"
    assert body["valid_from"] == valid_from.isoformat()


def test_full_interview_flow(client, db, scheduled_session, recruiter_headers):
    headers = _login(client, scheduled_session)
    session_id = scheduled_session.id

    started = client.post(f"/api/v1/sessions/{session_id}/start", json={}, headers=headers)
    assert started.status_code == 200
    assert started.json()["status"] == "active"

    state = client.get(f"/api/v1/sessions/{session_id}", headers=headers).json()
    assert state["time_remaining"] <= 1800
    question = state["current_question"]
    assert question["sequence"] == 1

    answered = client.post(f"/api/v1/sessions/{session_id}/answers", headers=headers, json={
        "question_id": question["id"],
        "answer": "First, a class is a blueprint. For example, a Car class creates car objects.",
    })
    assert answered.status_code == 200
    assert answered.json()["next_question"]["sequence"] == 2
    assert answered.json()["progress"]["answered"] == 1

    violation = client.post("/api/v1/violations", headers=headers, json={
        "session_id": session_id,
        "violation_type": "TAB_SWITCH",
        "severity": "MEDIUM",
    })
    assert violation.status_code == 201
    assert violation.json()["integrity_score"] == 95

    ended = client.post(f"/api/v1/sessions/{session_id}/end", json={}, headers=headers)
    assert ended.status_code == 200
    assert ended.json()["status"] == "completed"

    again = client.post(f"/api/v1/sessions/{session_id}/end", json={}, headers=headers)
    assert again.status_code == 409
    assert again.json()["error"] == "INVALID_STATE"

    scores = client.get(f"/api/v1/scores/{session_id}", headers=recruiter_headers)
    assert scores.status_code == 200
    assert scores.json()["integrity_risk"]["score"] == 5

    override = client.patch(f"/api/v1/scores/{session_id}/shortlist", headers=recruiter_headers, json={
        "status": "REVIEW", "notes": "check the tab switch",
    })
    assert override.json()["shortlist_status"] == "REVIEW"
    assert override.json()["overridden"] is True

    report = client.get(f"/api/v1/reports/{session_id}", headers=recruiter_headers).json()
    assert report["session"]["status"] == "completed"
    assert report["transcript"][0]["answer"].startswith("First, a class")
    assert report["integrity"]["integrity_score"] == 95
    assert report["interpretation"]["tab_behavior"] == "Tab switching observed 1 times"
    actions = [entry["action"] for entry in report["audit_trail"]]
    assert "INTERVIEW_COMPLETED" in actions
    assert "SHORTLIST_OVERRIDDEN" in actions


def test_time_remaining_auto_submits(client, db, active_session, candidate_headers):
    active_session.started_at = minutes_ago(31)
    db.commit()

    response = client.get(f"/api/v1/sessions/{active_session.id}/time-remaining", headers=candidate_headers)

    body = response.json()
    assert body["auto_submitted"] is True
    assert body["status"] == "completed"
    assert body["time_remaining"] == 0
    assert db.query(ScoreRecord).filter_by(session_id=active_session.id).count() == 1


def test_terminate_via_api(client, db, active_session, recruiter_headers):
    response = client.post(f"/api/v1/sessions/{active_session.id}/terminate", headers=recruiter_headers, json={
        "reason": "Multiple faces detected",
        "integrity_score": 30,
    })
    assert response.status_code == 200
    assert response.json()["status"] == "terminated"

    scores = client.get(f"/api/v1/scores/{active_session.id}", headers=recruiter_headers)
    assert scores.status_code == 404


def test_preview_requires_completion(client, active_session, recruiter_headers):
    response = client.get(f"/api/v1/scores/{active_session.id}/preview", headers=recruiter_headers)
    assert response.status_code == 409


def test_other_recruiter_cannot_read_integrity(client, active_session):
    headers = bearer("someone-else", Role.RECRUITER)
    response = client.get(f"/api/v1/sessions/{active_session.id}/integrity", headers=headers)
    assert response.status_code == 403


def test_delete_session(client, scheduled_session, recruiter_headers):
    response = client.delete(f"/api/v1/sessions/{scheduled_session.id}", headers=recruiter_headers)
    assert response.status_code == 204
    assert client.get(f"/api/v1/sessions/{scheduled_session.id}", headers=recruiter_headers).status_code == 404


def _ws_token(headers):
    return headers["Authorization"].split(" ", 1)[1]


def test_realtime_signals_reach_recruiter(client, db, active_session, candidate_headers, recruiter_headers):
    session_id = active_session.id
    recruiter_url = f"/ws/sessions/{session_id}/recruiter?token={_ws_token(recruiter_headers)}"
    candidate_url = f"/ws/sessions/{session_id}/candidate?token={_ws_token(candidate_headers)}"

    with client.websocket_connect(recruiter_url) as recruiter_ws:
        with client.websocket_connect(candidate_url) as candidate_ws:
            candidate_ws.send_text("not json")
            candidate_ws.send_json({"event": "copy-paste", "data": {"action": "paste"}})

            ack = candidate_ws.receive_json()
            broadcast = recruiter_ws.receive_json()

    assert ack["event"] == "violation-recorded"
    assert broadcast["event"] == "violation"
    assert broadcast["data"]["violation_type"] == "COPY_PASTE"
    assert broadcast["data"]["source"] == "realtime"
    assert broadcast["data"]["integrity_score"] == 95


def test_realtime_rejects_wrong_role(client, active_session, candidate_headers):
    url = f"/ws/sessions/{active_session.id}/recruiter?token={_ws_token(candidate_headers)}"
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(url) as ws:
            ws.receive_text()


def test_realtime_channel_survives_non_finite_samples(client, active_session, candidate_headers):
    url = f"/ws/sessions/{active_session.id}/candidate?token={_ws_token(candidate_headers)}"

    with client.websocket_connect(url) as candidate_ws:
        candidate_ws.send_text('{"event": "face-detection", "data": {"faceCount": Infinity}}')
        candidate_ws.send_json({"event": "tab-switch", "data": {"timestamp": 1e25}})
        candidate_ws.send_json({"event": "copy-paste", "data": {"action": "paste"}})

        ack = candidate_ws.receive_json()

    assert ack["event"] == "violation-recorded"
    assert ack["data"]["violation_type"] == "COPY_PASTE"


def test_realtime_channel_survives_a_failed_frame(client, active_session, candidate_headers, monkeypatch):
    from interview_engine.api.v1 import realtime as realtime_api

    original = realtime_api.record_violation
    calls = []

    def flaky_record(db, draft, **kwargs):
        calls.append(draft.violation_type)
        if len(calls) == 1:
            raise RuntimeError("database hiccup")
        return original(db, draft, **kwargs)

    monkeypatch.setattr(realtime_api, "record_violation", flaky_record)
    url = f"/ws/sessions/{active_session.id}/candidate?token={_ws_token(candidate_headers)}"

    with client.websocket_connect(url) as candidate_ws:
        candidate_ws.send_json({"event": "copy-paste", "data": {"action": "copy"}})
        candidate_ws.send_json({"event": "phone-detected", "data": {}})

        ack = candidate_ws.receive_json()

    assert len(calls) == 2
    assert ack["data"]["violation_type"] == "PHONE_DETECTED"
    assert ack["data"]["severity"] == "HIGH"
