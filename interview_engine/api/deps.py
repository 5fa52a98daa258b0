from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from interview_engine.core.errors import AuthorizationError
from interview_engine.core.security import decode_access_token
from interview_engine.services.evaluator import build_answer_evaluator
from interview_engine.services.notifier import Notifier, build_notifier
from interview_engine.services.question_engine import QuestionEngine
from interview_engine.services.question_generators import build_question_generator
from interview_engine.services.realtime import RoomManager
from interview_engine.services.scoring_engine import ScoringEngine
from interview_engine.utils.enums import Role

security = HTTPBearer(auto_error=False)


# Collaborators are process-wide singletons; tests swap them via dependency_overrides.

@lru_cache
def get_question_engine() -> QuestionEngine:
    return QuestionEngine(build_question_generator())


@lru_cache
def get_scoring_engine() -> ScoringEngine:
    return ScoringEngine(build_answer_evaluator())


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier()


@lru_cache
def get_room_manager() -> RoomManager:
    return RoomManager()


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> dict:
    if credentials is None:
        raise AuthorizationError("Access token required", code="MISSING_TOKEN")
    return decode_access_token(credentials.credentials)


def role_required(*allowed_roles: Role):
    allowed = {role.value for role in allowed_roles}

    def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in allowed:
            raise AuthorizationError("You do not have access to this resource")
        return user
    return dependency


get_candidate = role_required(Role.CANDIDATE)
get_recruiter = role_required(Role.RECRUITER)
get_participant = role_required(Role.CANDIDATE, Role.RECRUITER)
