import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from interview_engine.api.deps import get_room_manager
from interview_engine.core.database import get_db
from interview_engine.core.errors import InterviewError
from interview_engine.core.security import decode_access_token
from interview_engine.models.session import InterviewSession
from interview_engine.services.realtime import RoomManager, candidate_room, recruiter_room, violation_event
from interview_engine.services.signal_classifier import SignalClassifier
from interview_engine.services.violation_service import record_violation
from interview_engine.utils.enums import Role, ViolationSource

logger = logging.getLogger(__name__)

router = APIRouter()


def _authorize(db: Session, session_id: str, token: str | None, role: Role) -> bool:
    if not token:
        return False
    try:
        user = decode_access_token(token)
    except InterviewError:
        return False

    session = db.query(InterviewSession).filter_by(id=session_id).first()
    if not session or user["role"] != role.value:
        return False
    if role == Role.CANDIDATE:
        return user["id"] == session.candidate_id and user["session_id"] in (None, session.id)
    return user["id"] == session.recruiter_id


async def _handle_signal(
    websocket: WebSocket,
    db: Session,
    rooms: RoomManager,
    classifier: SignalClassifier,
    session_id: str,
    raw: str,
):
    try:
        message = json.loads(raw)
    except ValueError:
        message = None
    if not isinstance(message, dict):
        logger.warning("Dropping non-object message on session %s", session_id)
        return

    for draft in classifier.classify(message.get("event"), message.get("data")):
        try:
            saved, integrity = record_violation(db, draft, source=ViolationSource.REALTIME)
        except InterviewError as e:
            logger.warning("Could not record %s for session %s: %s", draft.violation_type.value, session_id, e)
            continue
        event = violation_event(saved, integrity)
        await rooms.broadcast(recruiter_room(session_id), "violation", event)
        await websocket.send_json({"event": "violation-recorded", "data": event})


@router.websocket("/ws/sessions/{session_id}/candidate")
async def candidate_channel(
    websocket: WebSocket,
    session_id: str,
    token: str | None = None,
    db: Session = Depends(get_db),
    rooms: RoomManager = Depends(get_room_manager),
):
    if not _authorize(db, session_id, token, Role.CANDIDATE):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    room = candidate_room(session_id)
    await rooms.join(room, websocket)
    classifier = SignalClassifier(session_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                await _handle_signal(websocket, db, rooms, classifier, session_id, raw)
            except WebSocketDisconnect:
                raise
            except Exception:
                # a failed frame is dropped; the channel stays open
                db.rollback()
                logger.exception("Failed to process signal on session %s", session_id)
    except WebSocketDisconnect:
        logger.info("Candidate channel closed for session %s", session_id)
    finally:
        await rooms.leave(room, websocket)


@router.websocket("/ws/sessions/{session_id}/recruiter")
async def recruiter_channel(
    websocket: WebSocket,
    session_id: str,
    token: str | None = None,
    db: Session = Depends(get_db),
    rooms: RoomManager = Depends(get_room_manager),
):
    if not _authorize(db, session_id, token, Role.RECRUITER):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    room = recruiter_room(session_id)
    await rooms.join(room, websocket)

    try:
        while True:
            # monitoring is receive-only; inbound frames just keep the socket alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Recruiter channel closed for session %s", session_id)
    finally:
        await rooms.leave(room, websocket)
