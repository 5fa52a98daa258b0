from dataclasses import dataclass, field

from interview_engine.utils.enums import SeverityLevel, ViolationType


@dataclass(frozen=True)
class SeverityWeights:
    """Penalty points charged per violation, by severity."""

    weights: dict = field(default_factory=lambda: {
        SeverityLevel.LOW: 2,
        SeverityLevel.MEDIUM: 5,
        SeverityLevel.HIGH: 10,
        SeverityLevel.CRITICAL: 15,
    })

    def weight(self, severity) -> int:
        return self.weights.get(SeverityLevel(severity), 0)


@dataclass(frozen=True)
class ScoreWeights:
    technical: float = 0.45
    problem_solving: float = 0.25
    communication: float = 0.15
    resume_authenticity: float = 0.15
    integrity_risk: float = 0.30


@dataclass(frozen=True)
class ShortlistPolicy:
    shortlist_min_final: int = 70
    shortlist_max_risk: int = 20
    reject_below_final: int = 60
    reject_above_risk: int = 35


@dataclass(frozen=True)
class SignalRule:
    """
    Debounce rule for one class of raw signal. The violation fires after
    `consecutive` qualifying samples in a row and is then suppressed for
    `cooldown_seconds`.
    """

    violation_type: ViolationType
    severity: SeverityLevel
    consecutive: int = 1
    cooldown_seconds: float = 0.0


SIGNAL_RULES = {
    "multiple_faces": SignalRule(ViolationType.MULTIPLE_FACES, SeverityLevel.CRITICAL, consecutive=6, cooldown_seconds=20),
    "no_face": SignalRule(ViolationType.NO_FACE, SeverityLevel.HIGH, consecutive=20, cooldown_seconds=30),
    "second_voice": SignalRule(ViolationType.SECOND_VOICE_DETECTED, SeverityLevel.CRITICAL, consecutive=3, cooldown_seconds=5),
    "background_noise": SignalRule(ViolationType.BACKGROUND_NOISE, SeverityLevel.MEDIUM, consecutive=5, cooldown_seconds=30),
    "tab_switch": SignalRule(ViolationType.TAB_SWITCH, SeverityLevel.HIGH, cooldown_seconds=2),
    "window_blur": SignalRule(ViolationType.WINDOW_BLUR, SeverityLevel.MEDIUM, cooldown_seconds=5),
    "copy_paste": SignalRule(ViolationType.COPY_PASTE, SeverityLevel.MEDIUM, cooldown_seconds=2),
    "dev_tools": SignalRule(ViolationType.DEV_TOOLS, SeverityLevel.HIGH, cooldown_seconds=30),
    "phone_detected": SignalRule(ViolationType.PHONE_DETECTED, SeverityLevel.HIGH, cooldown_seconds=10),
    "looking_away": SignalRule(ViolationType.LOOKING_AWAY, SeverityLevel.LOW, cooldown_seconds=10),
}

# looking-away samples shorter than this are ignored
LOOKING_AWAY_MIN_MS = 5000

# integrity score floors for each risk level
INTEGRITY_THRESHOLDS = {
    "NORMAL": 80,
    "SUSPICIOUS": 50,
}

DEFAULT_SEVERITY_WEIGHTS = SeverityWeights()
DEFAULT_SCORE_WEIGHTS = ScoreWeights()
DEFAULT_SHORTLIST_POLICY = ShortlistPolicy()
