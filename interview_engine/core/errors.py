from datetime import datetime


class InterviewError(Exception):
    """Base class for errors raised by the interview services."""

    code = "INTERVIEW_ERROR"
    status_code = 400

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class ValidationError(InterviewError):
    code = "VALIDATION_ERROR"


# unknown or expired links look like bad credentials; a link used outside
# its window or from another device is refused outright
LINK_STATUS_CODES = {
    "INVALID_LINK": 401,
    "EXPIRED": 401,
    "NOT_YET_ACTIVE": 403,
    "WINDOW_EXPIRED": 403,
    "DEVICE_MISMATCH": 403,
}


class LinkValidationError(ValidationError):
    """A rejected interview link. Carries the window boundary that was violated."""

    def __init__(
        self,
        code: str,
        message: str,
        valid_from: datetime | None = None,
        valid_until: datetime | None = None,
        expires_at: datetime | None = None,
    ):
        super().__init__(message, code=code)
        self.status_code = LINK_STATUS_CODES.get(code, 400)
        self.valid_from = valid_from
        self.valid_until = valid_until
        self.expires_at = expires_at

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.valid_from is not None:
            body["valid_from"] = self.valid_from.isoformat()
        if self.valid_until is not None:
            body["valid_until"] = self.valid_until.isoformat()
        if self.expires_at is not None:
            body["expires_at"] = self.expires_at.isoformat()
        return body


class AuthorizationError(InterviewError):
    code = "NOT_AUTHORIZED"
    status_code = 403

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message, code=code)
        # credential problems are 401, a valid caller acting out of bounds is 403
        if code in ("TOKEN_EXPIRED", "INVALID_TOKEN", "MISSING_TOKEN"):
            self.status_code = 401


class StateError(InterviewError):
    code = "INVALID_STATE"
    status_code = 409


class NotFoundError(InterviewError):
    code = "NOT_FOUND"
    status_code = 404


class ExternalCollaboratorFailure(InterviewError):
    code = "COLLABORATOR_UNAVAILABLE"
    status_code = 502
