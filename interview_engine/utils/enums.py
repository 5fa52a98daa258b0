from enum import Enum


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"


class Role(str, Enum):
    CANDIDATE = "candidate"
    RECRUITER = "recruiter"


class ViolationType(str, Enum):
    MULTIPLE_FACES = "MULTIPLE_FACES"
    NO_FACE = "NO_FACE"
    FACE_DISAPPEARED = "FACE_DISAPPEARED"
    UNKNOWN_FACE_DETECTED = "UNKNOWN_FACE_DETECTED"
    FACE_SUBSTITUTION = "FACE_SUBSTITUTION"
    SECOND_VOICE_DETECTED = "SECOND_VOICE_DETECTED"
    BACKGROUND_NOISE = "BACKGROUND_NOISE"
    TAB_SWITCH = "TAB_SWITCH"
    WINDOW_BLUR = "WINDOW_BLUR"
    COPY_PASTE = "COPY_PASTE"
    DEV_TOOLS = "DEV_TOOLS"
    LOOKING_AWAY = "LOOKING_AWAY"
    PHONE_DETECTED = "PHONE_DETECTED"


class SeverityLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ViolationSource(str, Enum):
    API = "api"
    REALTIME = "realtime"


class SignalType(str, Enum):
    FACE_DETECTION = "face-detection"
    NOISE_DETECTION = "noise-detection"
    TAB_SWITCH = "tab-switch"
    WINDOW_BLUR = "window-blur"
    COPY_PASTE = "copy-paste"
    DEV_TOOLS = "dev-tools"
    PHONE_DETECTED = "phone-detected"
    LOOKING_AWAY = "looking-away"


class QuestionType(str, Enum):
    TECHNICAL = "technical"
    CODING = "coding"
    SCENARIO = "scenario"
    BEHAVIORAL = "behavioral"
    RESUME = "resume"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionSource(str, Enum):
    SEED = "seed"
    AI = "ai"
    FALLBACK = "fallback"


class AnswerQuality(str, Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


class EvaluationMode(str, Enum):
    TECHNICAL = "technical"
    APPROACH = "approach"
    CLAIM = "claim"


class ShortlistStatus(str, Enum):
    SHORTLISTED = "SHORTLISTED"
    REVIEW = "REVIEW"
    REJECTED = "REJECTED"


class RiskLevel(str, Enum):
    NORMAL = "NORMAL"
    SUSPICIOUS = "SUSPICIOUS"
    HIGH_RISK = "HIGH_RISK"


class LinkRejection(str, Enum):
    INVALID_LINK = "INVALID_LINK"
    NOT_YET_ACTIVE = "NOT_YET_ACTIVE"
    WINDOW_EXPIRED = "WINDOW_EXPIRED"
    EXPIRED = "EXPIRED"
    DEVICE_MISMATCH = "DEVICE_MISMATCH"


class AuditAction(str, Enum):
    CANDIDATE_LOGIN = "CANDIDATE_LOGIN"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    INTERVIEW_STARTED = "INTERVIEW_STARTED"
    INTERVIEW_COMPLETED = "INTERVIEW_COMPLETED"
    INTERVIEW_TERMINATED = "INTERVIEW_TERMINATED"
    VIOLATION_LOGGED = "VIOLATION_LOGGED"
    SHORTLIST_OVERRIDDEN = "SHORTLIST_OVERRIDDEN"
