from types import SimpleNamespace

import pytest

from interview_engine.core.errors import AuthorizationError, StateError
from interview_engine.models.audit_log import AuditLog
from interview_engine.services.answer_analysis import communication_score, count_filler_words
from interview_engine.services.score_service import (
    get_score_breakdown,
    override_shortlist,
    preview_scores,
    stage_score_record,
)
from interview_engine.services.scoring_engine import (
    ScoringEngine,
    calculate_final_score,
    determine_shortlist_status,
)
from interview_engine.services.session_service import end_session
from interview_engine.utils.enums import AuditAction, EvaluationMode, ShortlistStatus

from conftest import StubEvaluator


def _q(qid, qtype, claim=None):
    return SimpleNamespace(id=qid, text=f"question {qid}", question_type=qtype,
                           expected_answer=None, resume_claim=claim)


def _a(qid, text="A reasonable answer that explains the idea with a short example."):
    return SimpleNamespace(question_id=qid, text=text)


def _v(severity):
    return SimpleNamespace(severity=severity, violation_type="TAB_SWITCH")


QUESTIONS = [
    _q("q1", "technical"),
    _q("q2", "scenario"),
    _q("q3", "coding"),
    _q("q4", "resume", claim="Python"),
]


@pytest.mark.parametrize("final, risk, critical, expected", [
    (75, 10, False, ShortlistStatus.SHORTLISTED),
    (75, 10, True, ShortlistStatus.REJECTED),
    (55, 0, False, ShortlistStatus.REJECTED),
    (65, 25, False, ShortlistStatus.REVIEW),
    (80, 36, False, ShortlistStatus.REJECTED),
    (70, 20, False, ShortlistStatus.SHORTLISTED),
    (60, 35, False, ShortlistStatus.REVIEW),
])
def test_shortlist_decision(final, risk, critical, expected):
    assert determine_shortlist_status(final, risk, critical) == expected


def test_final_score_formula():
    # 0.45*80 + 0.25*60 + 0.15*60 + 0.15*100 - 0.30*10 = 72
    assert calculate_final_score(80, 60, 60, 100, 10) == 72
    assert calculate_final_score(0, 0, 0, 0, 100) == 0
    assert calculate_final_score(100, 100, 100, 100, 0) == 100


def test_communication_heuristic():
    short = "Yes."
    assert communication_score(short) == 50 - 20 + 15

    words = " ".join(["word"] * 40)
    assert communication_score(words) == 50 + 20 + 15
    assert communication_score(words + "\n- point") == 100

    rambling = "um " * 5 + " ".join(["word"] * 40)
    assert communication_score(rambling) == 50 + 20


def test_filler_words_are_substring_matches():
    assert count_filler_words("Likely, basically, um") == 3


def test_scores_every_dimension():
    evaluator = StubEvaluator(scores_by_mode={
        EvaluationMode.TECHNICAL: 80,
        EvaluationMode.APPROACH: 60,
        EvaluationMode.CLAIM: 90,
    })
    engine = ScoringEngine(evaluator, max_workers=2)

    result = engine.score(QUESTIONS, [_a(q.id) for q in QUESTIONS], [_v("LOW")])

    assert result.technical == 80
    assert result.problem_solving == 60
    assert result.resume_authenticity == 90
    assert result.integrity_risk == 2
    # technical + coding, scenario + coding, claim
    assert len(evaluator.calls) == 5


def test_unanswered_questions_count_as_zero_and_claims_as_twenty():
    engine = ScoringEngine(StubEvaluator(score=80), max_workers=2)

    result = engine.score(QUESTIONS, [_a("q1")], [])

    assert result.technical == 40          # (80 + 0) / 2
    assert result.problem_solving == 0
    assert result.resume_authenticity == 20


def test_no_claim_questions_means_full_authenticity():
    engine = ScoringEngine(StubEvaluator(), max_workers=2)
    result = engine.score([_q("q1", "technical")], [_a("q1")], [])
    assert result.resume_authenticity == 100


def test_no_answers_scores_zero():
    engine = ScoringEngine(StubEvaluator(), max_workers=2)
    result = engine.score(QUESTIONS, [], [])
    assert result.communication == 0
    assert result.technical == 0
    assert result.shortlist_status == ShortlistStatus.REJECTED.value


def test_evaluator_failure_degrades_to_neutral():
    engine = ScoringEngine(StubEvaluator(score=90, fail_marker="FAIL"), max_workers=2)
    questions = [_q("q1", "technical"), _q("q2", "technical")]

    result = engine.score(questions, [_a("q1"), _a("q2", "FAIL this one")], [])

    assert result.technical == 70         # (90 + 50) / 2


def test_final_score_invariant_under_answer_reordering():
    engine = ScoringEngine(StubEvaluator(score=73), max_workers=3)
    answers = [_a(q.id, f"answer {i} with some detail " * (i + 1)) for i, q in enumerate(QUESTIONS)]

    forward = engine.score(QUESTIONS, answers, [_v("MEDIUM")])
    backward = engine.score(QUESTIONS, list(reversed(answers)), [_v("MEDIUM")])

    assert forward.final == backward.final
    assert forward.to_dict() == backward.to_dict()


def test_critical_violation_rejects():
    engine = ScoringEngine(StubEvaluator(score=100), max_workers=2)
    questions = [_q("q1", "technical")]
    result = engine.score(questions, [_a("q1")], [_v("CRITICAL")])
    assert result.has_critical is True
    assert result.shortlist_status == ShortlistStatus.REJECTED.value


def test_stage_score_record_is_idempotent(db, active_session, scoring_engine):
    first = stage_score_record(db, active_session, scoring_engine)
    db.commit()
    second = stage_score_record(db, active_session, scoring_engine)
    assert first.id == second.id


def test_preview_requires_completed_session(db, active_session, scoring_engine):
    with pytest.raises(StateError):
        preview_scores(db, active_session.id, scoring_engine)


def test_breakdown_and_override(db, active_session, recruiter, scoring_engine, notifier):
    end_session(db, active_session.id, "completed", scoring_engine, notifier)

    breakdown = get_score_breakdown(db, active_session.id)
    assert breakdown["integrity_risk"]["weight"] == -0.30
    assert breakdown["overridden"] is False
    computed = breakdown["shortlist_status"]

    override_shortlist(db, active_session.id, recruiter.id, ShortlistStatus.SHORTLISTED, notes="strong interview")

    breakdown = get_score_breakdown(db, active_session.id)
    assert breakdown["shortlist_status"] == ShortlistStatus.SHORTLISTED.value
    assert breakdown["computed_status"] == computed
    assert breakdown["recruiter_notes"] == "strong interview"
    assert db.query(AuditLog).filter_by(
        session_id=active_session.id, action=AuditAction.SHORTLIST_OVERRIDDEN.value,
    ).count() == 1

    preview = preview_scores(db, active_session.id, scoring_engine)
    assert preview.final == breakdown["final"]


def test_override_by_other_recruiter_is_rejected(db, active_session, scoring_engine, notifier):
    end_session(db, active_session.id, "completed", scoring_engine, notifier)
    with pytest.raises(AuthorizationError):
        override_shortlist(db, active_session.id, "other", ShortlistStatus.REJECTED)
