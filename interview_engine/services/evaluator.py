import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from openai import OpenAI
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from interview_engine.core.config import settings
from interview_engine.core.errors import ExternalCollaboratorFailure
from interview_engine.services.answer_analysis import analyze_answer_quality
from interview_engine.utils.enums import EvaluationMode

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50

SYSTEM_PROMPT = (
    "You are an expert technical interviewer evaluating candidate answers. "
    "Provide objective, fair assessments."
)

JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass
class Evaluation:
    score: int
    feedback: str


class AnswerEvaluator(ABC):
    """Scores one answer on a 0-100 scale."""

    @abstractmethod
    def evaluate(
        self,
        question: str,
        answer: str,
        reference_answer: Optional[str] = None,
        mode: EvaluationMode = EvaluationMode.TECHNICAL,
        resume_claim: Optional[str] = None,
    ) -> Evaluation:
        ...


def build_evaluation_prompt(
    question: str,
    answer: str,
    reference_answer: Optional[str],
    mode: EvaluationMode,
    resume_claim: Optional[str],
) -> str:
    expected = f"Expected Answer: {reference_answer}\n" if reference_answer else ""

    if mode == EvaluationMode.APPROACH:
        return (
            "Evaluate the following answer for problem-solving approach, logic, and optimization.\n\n"
            f"Question: {question}\nAnswer: {answer}\n{expected}\n"
            "Provide a score from 0-100 based on:\n"
            "- Approach and methodology (40%)\n"
            "- Logical reasoning (30%)\n"
            "- Optimization and efficiency (30%)\n\n"
            'Respond in JSON format: { "score": number, "feedback": "string" }'
        )
    if mode == EvaluationMode.CLAIM:
        return (
            "Evaluate if the answer demonstrates genuine knowledge of the claimed skill/experience.\n\n"
            f"Question: {question}\nAnswer: {answer}\nResume Claim: {resume_claim or 'Not specified'}\n\n"
            "Provide a score from 0-100 based on:\n"
            "- Depth of knowledge (40%)\n"
            "- Practical understanding (30%)\n"
            "- Consistency with claim (30%)\n\n"
            'Respond in JSON format: { "score": number, "feedback": "string" }'
        )
    return (
        "Evaluate the technical accuracy of the following answer.\n\n"
        f"Question: {question}\nAnswer: {answer}\n{expected}\n"
        "Provide a score from 0-100 based on:\n"
        "- Technical accuracy (50%)\n"
        "- Completeness (30%)\n"
        "- Clarity (20%)\n\n"
        'Respond in JSON format: { "score": number, "feedback": "string" }'
    )


def parse_evaluation(content: str) -> Evaluation:
    match = JSON_OBJECT_RE.search(content or "")
    if not match:
        raise ExternalCollaboratorFailure("Evaluator returned no JSON object")
    try:
        data = json.loads(match.group(0))
        score = int(round(float(data["score"])))
    except (ValueError, KeyError, TypeError) as e:
        raise ExternalCollaboratorFailure(f"Unparseable evaluator response: {e}")

    return Evaluation(score=min(100, max(0, score)), feedback=str(data.get("feedback", "")))


class OpenAIAnswerEvaluator(AnswerEvaluator):
    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self.client = client or OpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.EVALUATOR_TIMEOUT_SEC,
            max_retries=0,
        )
        self.model = model or settings.OPENAI_EVALUATOR_MODEL

    def evaluate(self, question, answer, reference_answer=None, mode=EvaluationMode.TECHNICAL, resume_claim=None):
        prompt = build_evaluation_prompt(question, answer, reference_answer, EvaluationMode(mode), resume_claim)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=500,
            )
        except Exception as e:
            raise ExternalCollaboratorFailure(f"Answer evaluation request failed: {e}") from e

        return parse_evaluation(response.choices[0].message.content)


def calculate_similarity(text1: str, text2: str) -> float:
    """Cosine similarity of TF-IDF vectors for two texts."""
    if not text1 or not text2:
        return 0.0
    try:
        vectors = TfidfVectorizer().fit_transform([text1, text2]).toarray()
    except ValueError:
        # empty vocabulary, e.g. only stop words or punctuation
        return 0.0
    return float(cosine_similarity(vectors)[0][1])


class HeuristicAnswerEvaluator(AnswerEvaluator):
    """
    Offline evaluator used when no model is configured. Blends the answer
    quality heuristic with similarity to the reference answer when one exists.
    """

    def evaluate(self, question, answer, reference_answer=None, mode=EvaluationMode.TECHNICAL, resume_claim=None):
        quality = analyze_answer_quality(answer)["score"]
        reference = reference_answer
        if EvaluationMode(mode) == EvaluationMode.CLAIM and not reference:
            reference = resume_claim

        if reference:
            similarity = calculate_similarity(answer, reference)
            score = round(0.5 * quality + 50 * similarity)
            feedback = f"Heuristic score (quality {quality}, similarity {similarity:.2f})"
        else:
            score = quality
            feedback = f"Heuristic score (quality {quality})"

        return Evaluation(score=min(100, max(0, score)), feedback=feedback)


def build_answer_evaluator() -> AnswerEvaluator:
    if settings.OPENAI_API_KEY:
        return OpenAIAnswerEvaluator()
    logger.info("OPENAI_API_KEY not set; using heuristic answer evaluator")
    return HeuristicAnswerEvaluator()
