import logging
import math
import time
from datetime import datetime, timezone

from interview_engine.schemas.violation import ViolationCreate
from interview_engine.services.scoring_config import LOOKING_AWAY_MIN_MS, SIGNAL_RULES, SignalRule
from interview_engine.utils.enums import SignalType

logger = logging.getLogger(__name__)

SPEECH_NOISE_TYPES = ("HUMAN_SPEECH", "SECOND_VOICE")

SINGLE_SHOT_SIGNALS = {
    SignalType.TAB_SWITCH: "tab_switch",
    SignalType.WINDOW_BLUR: "window_blur",
    SignalType.COPY_PASTE: "copy_paste",
    SignalType.DEV_TOOLS: "dev_tools",
    SignalType.PHONE_DETECTED: "phone_detected",
}


class MalformedSignal(ValueError):
    pass


def _number(data: dict, key: str) -> float:
    value = float(data[key])
    if not math.isfinite(value):
        raise MalformedSignal(f"{key} must be a finite number")
    return value


def _parse_timestamp(value):
    # clients send epoch milliseconds or ISO strings
    if value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError):
            raise MalformedSignal(f"Timestamp out of range: {value!r}")
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise MalformedSignal(f"Bad timestamp: {value!r}")
    raise MalformedSignal(f"Bad timestamp: {value!r}")


class SignalClassifier:
    """
    Turns raw proctoring samples from one candidate connection into
    violations. Sustained conditions (faces, audio) must hold for a run of
    consecutive samples before firing; every rule has a cooldown after it
    fires.
    """

    def __init__(self, session_id: str, rules: dict | None = None):
        self.session_id = session_id
        self.rules = rules or SIGNAL_RULES
        self.runs = {}
        self.last_fired = {}

    def classify(self, event: str, data: dict | None, now: float | None = None) -> list[ViolationCreate]:
        """Never raises; bad samples are logged and dropped."""
        now = time.time() if now is None else now
        try:
            return self._classify(SignalType(event), data or {}, now)
        except (ValueError, TypeError, KeyError, OverflowError, OSError) as e:
            logger.warning("Dropping signal %r for session %s: %s", event, self.session_id, e)
            return []

    def _classify(self, signal: SignalType, data: dict, now: float) -> list[ViolationCreate]:
        if not isinstance(data, dict):
            raise MalformedSignal("Signal data must be an object")

        if signal == SignalType.FACE_DETECTION:
            face_count = int(_number(data, "faceCount"))
            if face_count < 0:
                raise MalformedSignal("faceCount must not be negative")
            return self._sustained(
                {"multiple_faces": face_count > 1, "no_face": face_count == 0},
                data,
                {"faceCount": face_count},
                now,
            )

        if signal == SignalType.NOISE_DETECTION:
            noise_type = data["noiseType"]
            details = {"noiseType": noise_type, "confidence": data.get("confidence")}
            return self._sustained(
                {
                    "second_voice": noise_type in SPEECH_NOISE_TYPES,
                    "background_noise": noise_type == "BACKGROUND_NOISE",
                },
                data,
                details,
                now,
            )

        if signal == SignalType.LOOKING_AWAY:
            duration = _number(data, "duration")
            if duration <= LOOKING_AWAY_MIN_MS:
                return []
            return self._fire("looking_away", data, {"duration": duration}, now)

        key = SINGLE_SHOT_SIGNALS[signal]
        details = {k: v for k, v in data.items() if k not in ("timestamp", "screenshot")}
        return self._fire(key, data, details, now)

    def _sustained(self, conditions: dict, data: dict, details: dict, now: float) -> list[ViolationCreate]:
        violations = []
        for key, qualifies in conditions.items():
            if not qualifies:
                self.runs[key] = 0
                continue
            self.runs[key] = self.runs.get(key, 0) + 1
            if self.runs[key] >= self.rules[key].consecutive:
                violations.extend(self._fire(key, data, details, now))
        return violations

    def _fire(self, key: str, data: dict, details: dict, now: float) -> list[ViolationCreate]:
        rule: SignalRule = self.rules[key]
        last = self.last_fired.get(key)
        if last is not None and now - last < rule.cooldown_seconds:
            return []

        violation = ViolationCreate(
            session_id=self.session_id,
            violation_type=rule.violation_type,
            severity=rule.severity,
            message=f"{rule.violation_type.value} detected",
            timestamp=_parse_timestamp(data.get("timestamp")),
            details=details,
            screenshot_ref=data.get("screenshot"),
        )
        self.last_fired[key] = now
        self.runs[key] = 0

        logger.info("Classified %s for session %s", rule.violation_type.value, self.session_id)
        return [violation]
