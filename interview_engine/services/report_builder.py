from sqlalchemy.orm import Session

from interview_engine.core.errors import NotFoundError
from interview_engine.models.session import InterviewSession
from interview_engine.services.audit_service import list_audit
from interview_engine.services.integrity_engine import calculate_integrity, load_violations
from interview_engine.services.score_service import get_score_breakdown, get_score_record
from interview_engine.services.scoring_config import DEFAULT_SEVERITY_WEIGHTS, SeverityWeights
from interview_engine.utils.enums import ViolationType


def _isoformat(value):
    return value.isoformat() if value else None


def build_interpretation(by_type: dict) -> dict:
    """Plain-language notes for the recruiter, one per behaviour that was observed."""
    no_face = by_type.get(ViolationType.NO_FACE.value, 0) + by_type.get(ViolationType.FACE_DISAPPEARED.value, 0)
    multiple_faces = by_type.get(ViolationType.MULTIPLE_FACES.value, 0)
    voices = by_type.get(ViolationType.SECOND_VOICE_DETECTED.value, 0)
    tab_switch = by_type.get(ViolationType.TAB_SWITCH.value, 0)
    window_blur = by_type.get(ViolationType.WINDOW_BLUR.value, 0)
    copy_paste = by_type.get(ViolationType.COPY_PASTE.value, 0)
    phone = by_type.get(ViolationType.PHONE_DETECTED.value, 0)

    interpretation = {}

    if no_face > 0:
        interpretation["face_presence"] = (
            f"Candidate left the camera frame {no_face} times"
        )

    if multiple_faces > 0:
        interpretation["external_presence"] = (
            "More than one face was detected during the interview"
        )

    if voices > 0:
        interpretation["audio"] = (
            f"Another voice was heard {voices} times"
        )

    if tab_switch > 0:
        interpretation["tab_behavior"] = (
            f"Tab switching observed {tab_switch} times"
        )

    if window_blur > 0:
        interpretation["focus_behavior"] = (
            f"Window focus was lost {window_blur} times"
        )

    if copy_paste > 0:
        interpretation["clipboard"] = (
            f"Copy or paste was used {copy_paste} times"
        )

    if phone > 0:
        interpretation["devices"] = (
            "A phone was detected in view"
        )

    return interpretation


def build_interview_report(
    db: Session,
    session_id: str,
    weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS,
) -> dict:
    session = db.query(InterviewSession).filter_by(id=session_id).first()
    if not session:
        raise NotFoundError("Session not found")

    violations = load_violations(db, session_id)
    integrity = calculate_integrity(violations, weights)
    answers = {a.question_id: a for a in session.answers}

    transcript = []
    for question in session.questions:
        answer = answers.get(question.id)
        transcript.append({
            "question_number": question.sequence,
            "question": question.text,
            "question_type": question.question_type,
            "difficulty": question.difficulty,
            "source": question.source,
            "resume_claim": question.resume_claim,
            "answer": answer.text if answer else None,
            "answer_quality": answer.quality if answer else None,
            "submitted_at": _isoformat(answer.submitted_at) if answer else None,
        })

    scores = None
    if get_score_record(db, session_id):
        scores = get_score_breakdown(db, session_id)

    return {
        "session_id": session.id,

        "session": {
            "status": session.status,
            "candidate_name": session.candidate.full_name if session.candidate else None,
            "candidate_email": session.candidate.email if session.candidate else None,
            "started_at": _isoformat(session.started_at),
            "ended_at": _isoformat(session.ended_at),
            "end_reason": session.end_reason,
            "duration_seconds": session.duration_seconds,
        },

        "transcript": transcript,
        "scores": scores,

        "integrity": integrity,
        "violations": [
            {
                "violation_type": v.violation_type,
                "severity": v.severity,
                "impact_weight": v.impact_weight,
                "source": v.source,
                "message": v.message,
                "timestamp": _isoformat(v.timestamp),
            }
            for v in violations
        ],

        "interpretation": build_interpretation(integrity["by_type"]),

        "audit_trail": [
            {
                "action": entry.action,
                "actor_id": entry.actor_id,
                "details": entry.details,
                "created_at": _isoformat(entry.created_at),
            }
            for entry in list_audit(db, session_id)
        ],

        "ai_note": (
            "This report summarizes observed candidate behavior during the interview. "
            "AI provides behavioral indicators only."
        ),

        "final_decision_note": (
            "Final interview decisions should always be made by the interviewer."
        ),
    }
