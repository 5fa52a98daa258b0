import logging
from dataclasses import replace
from typing import Optional

from interview_engine.core.config import settings
from interview_engine.services.question_generators import (
    FallbackQuestionPool,
    GeneratedQuestion,
    QuestionContext,
    QuestionGenerator,
)
from interview_engine.utils.enums import AnswerQuality, Difficulty, QuestionSource, QuestionType

logger = logging.getLogger(__name__)

DUPLICATE_PREFIX_CHARS = 50

# question kind asked at each position in the interview
QUESTION_TYPE_PLAN = {
    1: QuestionType.TECHNICAL,
    2: QuestionType.TECHNICAL,
    3: QuestionType.SCENARIO,
    4: QuestionType.RESUME,
    5: QuestionType.TECHNICAL,
    6: QuestionType.SCENARIO,
    7: QuestionType.CODING,
    8: QuestionType.RESUME,
    9: QuestionType.SCENARIO,
    10: QuestionType.TECHNICAL,
}


def difficulty_for(question_number: int, previous_quality: Optional[str]) -> Difficulty:
    excellent = previous_quality == AnswerQuality.EXCELLENT.value
    if question_number <= 3:
        return Difficulty.MEDIUM if excellent else Difficulty.EASY
    if question_number <= 6:
        return Difficulty.HARD if excellent else Difficulty.MEDIUM
    return Difficulty.HARD


def plan_question(question_number: int, profile: dict, used_claims: list) -> tuple:
    """Returns (question_type, resume_claim) for the given position."""
    qtype = QUESTION_TYPE_PLAN.get(question_number, QuestionType.TECHNICAL)
    if qtype != QuestionType.RESUME:
        return qtype, None

    used = {claim.lower() for claim in used_claims if claim}
    for skill in profile.get("skills") or []:
        if skill and skill.lower() not in used:
            return QuestionType.RESUME, skill
    # nothing left on the resume to verify
    return QuestionType.TECHNICAL, None


def is_near_duplicate(candidate: str, history: list) -> bool:
    text = candidate.strip().lower()
    for asked in history:
        prior = asked.strip().lower()
        if text == prior:
            return True
        if text[:DUPLICATE_PREFIX_CHARS] in prior or prior[:DUPLICATE_PREFIX_CHARS] in text:
            return True
    return False


def progress(answered: int, total: int) -> dict:
    return {
        "answered": answered,
        "total": total,
        "percentage": round(answered / settings.MAX_QUESTIONS * 100),
    }


class QuestionEngine:
    def __init__(self, generator: QuestionGenerator, seed_pool: Optional[QuestionGenerator] = None):
        self.generator = generator
        self.seed_pool = seed_pool or FallbackQuestionPool()

    def seed_question(self, profile: dict) -> GeneratedQuestion:
        """First question, always drawn from the deterministic pool."""
        ctx = QuestionContext(
            previous_question="",
            previous_answer="",
            candidate_profile=profile,
            history=[],
            question_number=1,
            difficulty=Difficulty.EASY,
            question_type=QUESTION_TYPE_PLAN[1],
        )
        return replace(self.seed_pool.generate(ctx), source=QuestionSource.SEED)

    def next_question(
        self,
        previous_question: str,
        previous_answer: str,
        previous_quality: str,
        profile: dict,
        history: list,
        used_claims: list,
    ) -> Optional[GeneratedQuestion]:
        question_number = len(history) + 1
        if question_number > settings.MAX_QUESTIONS:
            return None

        qtype, claim = plan_question(question_number, profile, used_claims)
        ctx = QuestionContext(
            previous_question=previous_question,
            previous_answer=previous_answer,
            candidate_profile=profile,
            history=list(history),
            question_number=question_number,
            difficulty=difficulty_for(question_number, previous_quality),
            question_type=qtype,
            resume_claim=claim,
        )

        generated = self.generator.generate(ctx)
        if not is_near_duplicate(generated.text, history):
            return generated

        logger.warning("Duplicate question detected for question %s, retrying once", question_number)
        ctx.retry = True
        ctx.previous_answer = f"{previous_answer} (retry)"
        retried = self.generator.generate(ctx)
        if is_near_duplicate(retried.text, history):
            # accepted anyway; duplicates are reduced, not eliminated
            logger.warning("Retry for question %s is still a near-duplicate; accepting it", question_number)
        return retried
