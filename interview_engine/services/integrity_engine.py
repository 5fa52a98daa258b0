from sqlalchemy.orm import Session
from collections import defaultdict
from interview_engine.models.violation import Violation
from interview_engine.services.scoring_config import (
    DEFAULT_SEVERITY_WEIGHTS,
    INTEGRITY_THRESHOLDS,
    SeverityWeights,
)
from interview_engine.utils.enums import RiskLevel, SeverityLevel


def total_penalty(violations, weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS) -> int:
    return sum(weights.weight(v.severity) for v in violations)


def integrity_score(violations, weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS) -> int:
    return max(0, 100 - total_penalty(violations, weights))


def integrity_risk(violations, weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS) -> int:
    return min(100, total_penalty(violations, weights))


def has_critical(violations) -> bool:
    return any(v.severity == SeverityLevel.CRITICAL.value for v in violations)


def calculate_integrity(violations, weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS) -> dict:
    """
    Summarise a violation set. Pure over its input, so the result does not
    depend on the order in which violations were recorded.
    """
    by_severity = {level.value: 0 for level in SeverityLevel}
    by_type = defaultdict(int)

    for violation in violations:
        by_severity[violation.severity] = by_severity.get(violation.severity, 0) + 1
        by_type[violation.violation_type] += 1

    penalty = total_penalty(violations, weights)
    score = max(0, 100 - penalty)

    return {
        "integrity_score": score,
        "total_penalty": penalty,
        "risk_level": determine_risk_level(score),
        "has_critical": has_critical(violations),
        "total_count": len(violations),
        "by_severity": by_severity,
        "by_type": dict(sorted(by_type.items())),
    }


def load_violations(db: Session, session_id: str) -> list[Violation]:
    return (
        db.query(Violation)
        .filter(Violation.session_id == session_id)
        .order_by(Violation.timestamp.asc(), Violation.created_at.asc())
        .all()
    )


def calculate_integrity_for_session(
    db: Session,
    session_id: str,
    weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS,
) -> dict:
    # always recomputed from the full log, never cached
    result = calculate_integrity(load_violations(db, session_id), weights)
    result["session_id"] = session_id
    return result


def determine_risk_level(score: int) -> str:
    if score >= INTEGRITY_THRESHOLDS["NORMAL"]:
        return RiskLevel.NORMAL.value
    elif score >= INTEGRITY_THRESHOLDS["SUSPICIOUS"]:
        return RiskLevel.SUSPICIOUS.value
    return RiskLevel.HIGH_RISK.value
