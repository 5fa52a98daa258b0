from pydantic import BaseModel
from datetime import datetime
from typing import Any
from interview_engine.utils.enums import ViolationType, SeverityLevel, RiskLevel


class ViolationCreate(BaseModel):
    session_id: str
    violation_type: ViolationType
    severity: SeverityLevel
    message: str | None = None
    timestamp: datetime | None = None
    details: dict[str, Any] | None = None
    screenshot_ref: str | None = None


class ViolationResponse(BaseModel):
    id: str
    session_id: str
    violation_type: ViolationType
    severity: SeverityLevel
    impact_weight: int
    message: str | None
    source: str
    details: dict[str, Any] | None
    screenshot_ref: str | None
    timestamp: datetime

    class Config:
        from_attributes = True


class IntegrityResponse(BaseModel):
    session_id: str
    integrity_score: int
    total_penalty: int
    risk_level: RiskLevel
    has_critical: bool
    total_count: int
    by_severity: dict[str, int]
    by_type: dict[str, int]


class ViolationIngested(BaseModel):
    violation_id: str
    session_id: str
    integrity_score: int
    risk_level: RiskLevel
