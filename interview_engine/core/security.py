from datetime import datetime, timedelta
from typing import Optional

import jwt

from interview_engine.core.config import settings
from interview_engine.core.errors import AuthorizationError


def create_access_token(
    subject: str,
    role: str,
    session_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Creates a JWT with subject (candidate or recruiter id) and role.
    Candidate tokens are bound to the session they logged into.
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.JWT_EXPIRES_MINUTES))
    to_encode = {
        "sub": subject,
        "role": role,
        "exp": expire,
    }
    if session_id:
        to_encode["session_id"] = session_id
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decodes a JWT and returns the caller identity (id, role, session_id).
    Raises AuthorizationError if the token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthorizationError("Token expired", code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise AuthorizationError("Invalid token", code="INVALID_TOKEN")

    return {
        "id": payload.get("sub"),
        "role": payload.get("role"),
        "session_id": payload.get("session_id"),
    }
