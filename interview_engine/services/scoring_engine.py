"""
Multi-dimensional scoring for a finished interview.

Five independent 0-100 sub-scores are combined into a weighted final score
and a shortlist decision. Evaluator calls run in parallel; a failed call
contributes the neutral score for that answer only.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, asdict

from interview_engine.core.config import settings
from interview_engine.services.answer_analysis import communication_score
from interview_engine.services.evaluator import AnswerEvaluator, NEUTRAL_SCORE
from interview_engine.services.integrity_engine import has_critical, integrity_risk
from interview_engine.services.scoring_config import (
    DEFAULT_SCORE_WEIGHTS,
    DEFAULT_SEVERITY_WEIGHTS,
    DEFAULT_SHORTLIST_POLICY,
    ScoreWeights,
    SeverityWeights,
    ShortlistPolicy,
)
from interview_engine.utils.enums import EvaluationMode, QuestionType, ShortlistStatus

logger = logging.getLogger(__name__)

TECHNICAL_TYPES = (QuestionType.TECHNICAL.value, QuestionType.CODING.value)
PROBLEM_SOLVING_TYPES = (QuestionType.SCENARIO.value, QuestionType.CODING.value)

# an unanswered resume-claim question still counts, at this score
UNANSWERED_CLAIM_SCORE = 20
NO_CLAIMS_SCORE = 100


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value, low=0, high=100):
    return max(low, min(high, value))


@dataclass
class ScoreResult:
    technical: int
    problem_solving: int
    communication: int
    resume_authenticity: int
    integrity_risk: int
    final: int
    shortlist_status: str
    has_critical: bool
    evaluations: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_final_score(
    technical: float,
    problem_solving: float,
    communication: float,
    resume_authenticity: float,
    integrity_risk: float,
    weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS,
) -> int:
    raw = (
        technical * weights.technical
        + problem_solving * weights.problem_solving
        + communication * weights.communication
        + resume_authenticity * weights.resume_authenticity
        - integrity_risk * weights.integrity_risk
    )
    return round_half_up(clamp(raw))


def determine_shortlist_status(
    final_score: int,
    integrity_risk_score: int,
    critical: bool,
    policy: ShortlistPolicy = DEFAULT_SHORTLIST_POLICY,
) -> ShortlistStatus:
    if (
        final_score >= policy.shortlist_min_final
        and integrity_risk_score <= policy.shortlist_max_risk
        and not critical
    ):
        return ShortlistStatus.SHORTLISTED

    if (
        final_score < policy.reject_below_final
        or integrity_risk_score > policy.reject_above_risk
        or critical
    ):
        return ShortlistStatus.REJECTED

    return ShortlistStatus.REVIEW


@dataclass(frozen=True)
class _QuestionView:
    id: str
    text: str
    question_type: str
    expected_answer: str | None
    resume_claim: str | None


@dataclass(frozen=True)
class _AnswerView:
    question_id: str
    text: str


def _snapshot(questions, answers):
    # plain copies, so worker threads never touch ORM state
    question_views = [
        _QuestionView(q.id, q.text, q.question_type, q.expected_answer, q.resume_claim)
        for q in questions
    ]
    answer_views = [_AnswerView(a.question_id, a.text) for a in answers]
    return question_views, answer_views


def _average(values) -> int:
    values = list(values)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


class ScoringEngine:
    def __init__(
        self,
        evaluator: AnswerEvaluator,
        severity_weights: SeverityWeights = DEFAULT_SEVERITY_WEIGHTS,
        score_weights: ScoreWeights = DEFAULT_SCORE_WEIGHTS,
        policy: ShortlistPolicy = DEFAULT_SHORTLIST_POLICY,
        max_workers: int | None = None,
    ):
        self.evaluator = evaluator
        self.severity_weights = severity_weights
        self.score_weights = score_weights
        self.policy = policy
        self.max_workers = max_workers or settings.SCORING_MAX_WORKERS

    def score(self, questions, answers, violations) -> ScoreResult:
        """
        Score a session from its questions, answers and violations. Answers
        are matched to questions by id, so their order does not matter.
        """
        questions, answers = _snapshot(questions, answers)
        answers_by_question = {a.question_id: a for a in answers}
        evaluations = self._evaluate_all(questions, answers_by_question)

        technical_questions = [q for q in questions if q.question_type in TECHNICAL_TYPES]
        technical = _average(
            evaluations.get((q.id, EvaluationMode.TECHNICAL), 0) for q in technical_questions
        )

        scenario_questions = [q for q in questions if q.question_type in PROBLEM_SOLVING_TYPES]
        problem_solving = _average(
            evaluations.get((q.id, EvaluationMode.APPROACH), 0) for q in scenario_questions
        )

        communication = _average(communication_score(a.text) for a in answers)

        claim_questions = [q for q in questions if q.resume_claim]
        if claim_questions:
            resume_authenticity = _average(
                evaluations.get((q.id, EvaluationMode.CLAIM), UNANSWERED_CLAIM_SCORE) for q in claim_questions
            )
        else:
            resume_authenticity = NO_CLAIMS_SCORE

        risk = integrity_risk(violations, self.severity_weights)
        critical = has_critical(violations)

        final = calculate_final_score(
            technical, problem_solving, communication, resume_authenticity, risk, self.score_weights
        )
        status = determine_shortlist_status(final, risk, critical, self.policy)

        return ScoreResult(
            technical=technical,
            problem_solving=problem_solving,
            communication=communication,
            resume_authenticity=resume_authenticity,
            integrity_risk=risk,
            final=final,
            shortlist_status=status.value,
            has_critical=critical,
            evaluations=[
                {"question_id": qid, "mode": mode.value, "score": score}
                for (qid, mode), score in sorted(evaluations.items(), key=lambda item: (item[0][0], item[0][1].value))
            ],
        )

    def _evaluate_all(self, questions, answers_by_question) -> dict:
        jobs = []
        for question in questions:
            answer = answers_by_question.get(question.id)
            if answer is None:
                continue
            if question.question_type in TECHNICAL_TYPES:
                jobs.append((question, answer, EvaluationMode.TECHNICAL))
            if question.question_type in PROBLEM_SOLVING_TYPES:
                jobs.append((question, answer, EvaluationMode.APPROACH))
            if question.resume_claim:
                jobs.append((question, answer, EvaluationMode.CLAIM))

        if not jobs:
            return {}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="scoring") as pool:
            futures = {
                (question.id, mode): pool.submit(self._evaluate_one, question, answer, mode)
                for question, answer, mode in jobs
            }
            return {key: future.result() for key, future in futures.items()}

    def _evaluate_one(self, question, answer, mode: EvaluationMode) -> int:
        try:
            evaluation = self.evaluator.evaluate(
                question.text,
                answer.text,
                reference_answer=question.expected_answer,
                mode=mode,
                resume_claim=question.resume_claim,
            )
        except Exception as e:
            logger.warning(
                "Evaluation of question %s (%s) failed, using neutral score: %s",
                question.id, mode.value, e,
            )
            return NEUTRAL_SCORE
        return clamp(int(evaluation.score))
