"""
Question sources for the adaptive interview.

Every source implements `QuestionGenerator.generate(ctx)`. The AI source is
normally wrapped in `TimeoutFallbackGenerator`, which bounds each call and
falls back to the deterministic pool on timeout or error.
"""
import logging
import random
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Optional

from openai import OpenAI

from interview_engine.core.config import settings
from interview_engine.core.errors import ExternalCollaboratorFailure
from interview_engine.utils.enums import Difficulty, QuestionSource, QuestionType

logger = logging.getLogger(__name__)


@dataclass
class QuestionContext:
    previous_question: str
    previous_answer: str
    candidate_profile: dict
    history: list
    question_number: int
    difficulty: Difficulty
    question_type: QuestionType = QuestionType.TECHNICAL
    resume_claim: Optional[str] = None
    retry: bool = False


@dataclass
class GeneratedQuestion:
    text: str
    difficulty: Difficulty
    question_number: int
    question_type: QuestionType = QuestionType.TECHNICAL
    source: QuestionSource = QuestionSource.FALLBACK
    resume_claim: Optional[str] = None
    expected_answer: Optional[str] = None


class QuestionGenerator(ABC):
    source = QuestionSource.FALLBACK

    @abstractmethod
    def generate(self, ctx: QuestionContext) -> GeneratedQuestion:
        ...


# (question, type) pairs per tier
EASY_QUESTIONS = [
    ("What is the difference between a class and an object in object-oriented programming?", QuestionType.TECHNICAL),
    ("Explain what an API is and why it's important in modern software development.", QuestionType.TECHNICAL),
    ("What is version control? Why is it important for software development teams?", QuestionType.TECHNICAL),
    ("Describe the difference between frontend and backend development.", QuestionType.TECHNICAL),
    ("What is the purpose of a database index? How does it improve query performance?", QuestionType.TECHNICAL),
    ("Explain what CRUD operations are and provide examples.", QuestionType.TECHNICAL),
    ("What is the difference between GET and POST HTTP methods?", QuestionType.TECHNICAL),
    ("A page in your application suddenly loads slowly for every user. What are the first three things you check?", QuestionType.SCENARIO),
    ("What is the purpose of unit testing? Why is it important?", QuestionType.TECHNICAL),
    ("Write a function that returns the second largest number in a list. What edge cases do you handle?", QuestionType.CODING),
]

MEDIUM_QUESTIONS = [
    ("What is the difference between synchronous and asynchronous programming? Provide examples of when to use each.", QuestionType.TECHNICAL),
    ("Explain how RESTful APIs work. What are the key principles and HTTP methods?", QuestionType.TECHNICAL),
    ("How would you optimize a slow database query? What tools and techniques would you use?", QuestionType.SCENARIO),
    ("Explain the concept of dependency injection. Why is it useful in software development?", QuestionType.TECHNICAL),
    ("What are design patterns? Describe the Singleton, Factory, and Observer patterns with examples.", QuestionType.TECHNICAL),
    ("How does authentication differ from authorization? Sketch a basic token-based authentication flow.", QuestionType.CODING),
    ("A production bug is affecting a subset of users and you cannot reproduce it locally. Walk through how you handle it.", QuestionType.SCENARIO),
    ("What is the difference between SQL and NoSQL databases? When would you use each?", QuestionType.TECHNICAL),
    ("How would you implement pagination for a large dataset? Discuss offset vs cursor-based pagination.", QuestionType.CODING),
    ("Explain the concept of middleware in web frameworks. Provide practical use cases.", QuestionType.TECHNICAL),
]

HARD_QUESTIONS = [
    ("Explain the differences between TCP and UDP protocols. In what scenarios would you choose one over the other, and why?", QuestionType.TECHNICAL),
    ("Design a scalable microservices architecture for an e-commerce platform handling 1 million requests per day. What are the key considerations?", QuestionType.SCENARIO),
    ("How would you implement a distributed caching system? Discuss cache invalidation strategies and consistency models.", QuestionType.TECHNICAL),
    ("Explain the CAP theorem and provide real-world examples of systems that prioritize different aspects (CP, AP, CA).", QuestionType.TECHNICAL),
    ("Design a rate limiting system that can handle 10,000 requests per second. What data structures and algorithms would you use?", QuestionType.CODING),
    ("How would you detect and prevent SQL injection attacks in a web application? Provide code examples.", QuestionType.CODING),
    ("Your service's p99 latency doubled after a deploy but p50 is unchanged. How do you find the cause?", QuestionType.SCENARIO),
    ("Design a real-time notification system for a social media platform with millions of users. How would you ensure reliability?", QuestionType.SCENARIO),
    ("How would you implement a distributed transaction across multiple microservices? Discuss the two-phase commit protocol.", QuestionType.TECHNICAL),
    ("Explain how garbage collection works in your preferred programming language. What are the different GC algorithms?", QuestionType.TECHNICAL),
]

QUESTION_POOLS = {
    Difficulty.EASY: EASY_QUESTIONS,
    Difficulty.MEDIUM: MEDIUM_QUESTIONS,
    Difficulty.HARD: HARD_QUESTIONS,
}

RESUME_CLAIM_TEMPLATES = {
    Difficulty.EASY: "Your resume lists {skill}. Describe a project where you used it and what your role was.",
    Difficulty.MEDIUM: "You mention experience with {skill}. What was the hardest problem you solved with it, and how?",
    Difficulty.HARD: "Walk me through a production issue you debugged involving {skill}. What trade-offs did you make in the fix?",
}

HISTORY_PREFIX_CHARS = 30


def _already_asked(candidate: str, history: list) -> bool:
    prefix = candidate.lower()[:HISTORY_PREFIX_CHARS]
    return any(prefix in asked.lower() for asked in history)


class FallbackQuestionPool(QuestionGenerator):
    """Deterministic pool partitioned by difficulty, filtered against history."""

    source = QuestionSource.FALLBACK

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, ctx: QuestionContext) -> GeneratedQuestion:
        difficulty = Difficulty(ctx.difficulty)

        if ctx.question_type == QuestionType.RESUME and ctx.resume_claim:
            text = RESUME_CLAIM_TEMPLATES[difficulty].format(skill=ctx.resume_claim)
            if not _already_asked(text, ctx.history):
                return self._build(ctx, text, QuestionType.RESUME, difficulty, resume_claim=ctx.resume_claim)

        available = [
            (text, qtype) for text, qtype in QUESTION_POOLS[difficulty]
            if not _already_asked(text, ctx.history)
        ]
        if not available:
            difficulty = Difficulty.HARD
            available = [
                (text, qtype) for text, qtype in HARD_QUESTIONS
                if not _already_asked(text, ctx.history)
            ]

        if not available:
            # every pool entry has been used; number a variant so it stays unique
            text, qtype = self.rng.choice(HARD_QUESTIONS)
            text = f"Question {ctx.question_number}: {text} Answer with a different example than before."
            return self._build(ctx, text, qtype, difficulty)

        preferred = [item for item in available if item[1] == ctx.question_type]
        text, qtype = self.rng.choice(preferred or available)
        return self._build(ctx, text, qtype, difficulty)

    def _build(self, ctx, text, qtype, difficulty, resume_claim=None) -> GeneratedQuestion:
        return GeneratedQuestion(
            text=text,
            difficulty=difficulty,
            question_number=ctx.question_number,
            question_type=qtype,
            source=self.source,
            resume_claim=resume_claim,
        )


DIFFICULTY_GUIDANCE = {
    Difficulty.EASY: "foundational",
    Difficulty.MEDIUM: "moderately complex",
    Difficulty.HARD: "challenging with edge cases",
}

TYPE_GUIDANCE = {
    QuestionType.TECHNICAL: "a technical knowledge question",
    QuestionType.CODING: "a coding question that asks for an implementation or pseudocode",
    QuestionType.SCENARIO: "a scenario-based problem-solving question",
    QuestionType.BEHAVIORAL: "a behavioral question",
    QuestionType.RESUME: "a question verifying the candidate's claimed experience with {claim}",
}


def build_question_prompt(ctx: QuestionContext) -> str:
    skills = ctx.candidate_profile.get("skills") or []
    focus = skills[0] if skills else "technical"
    history = "\n".join(f"{i + 1}. {q}" for i, q in enumerate(ctx.history))
    kind = TYPE_GUIDANCE[QuestionType(ctx.question_type)].format(claim=ctx.resume_claim or focus)
    difficulty = Difficulty(ctx.difficulty)

    prompt = (
        f"You are an expert technical interviewer conducting a {difficulty.value} difficulty interview.\n\n"
        "Candidate Profile:\n"
        f"- Skills: {', '.join(skills) or 'Not specified'}\n"
        f"- Experience: {ctx.candidate_profile.get('experience') or 'Not specified'}\n"
        f"- Current Question Number: {ctx.question_number} of {settings.MAX_QUESTIONS}\n\n"
        f"Previous Question: {ctx.previous_question}\n\n"
        f"Candidate's Answer: {ctx.previous_answer}\n\n"
        f"Questions Already Asked (DO NOT REPEAT):\n{history}\n\n"
        "CRITICAL REQUIREMENTS:\n"
        "1. Generate a COMPLETELY UNIQUE question - DO NOT repeat or rephrase any previous question\n"
        f"2. Difficulty: {difficulty.value} - make it {DIFFICULTY_GUIDANCE[difficulty]}\n"
        "3. Build upon their previous answer to test deeper understanding\n"
        f"4. Focus on {focus} skills\n"
        f"5. Ask {kind}\n"
        f"6. Make it progressively harder than question {ctx.question_number - 1}\n\n"
        "Return ONLY the question text, nothing else."
    )
    if ctx.retry:
        prompt += (
            "\n\nYour previous suggestion duplicated an earlier question. Pick a different "
            "sub-topic and a different angle from every question listed above."
        )
    return prompt


class OpenAIQuestionGenerator(QuestionGenerator):
    source = QuestionSource.AI

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self.client = client or OpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.QUESTION_GENERATOR_TIMEOUT_SEC,
            max_retries=0,
        )
        self.model = model or settings.OPENAI_QUESTION_MODEL

    def generate(self, ctx: QuestionContext) -> GeneratedQuestion:
        difficulty = Difficulty(ctx.difficulty)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": (
                            "You are an expert technical interviewer. Generate unique, progressively "
                            f"challenging questions. Never repeat questions. Focus on {difficulty.value} "
                            "difficulty level."
                        ),
                    },
                    {"role": "user", "content": build_question_prompt(ctx)},
                ],
                temperature=1.0 if ctx.retry else 0.9,
                max_tokens=250,
                presence_penalty=0.8,
                frequency_penalty=0.8,
            )
        except Exception as e:
            raise ExternalCollaboratorFailure(f"Question generation request failed: {e}") from e

        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise ExternalCollaboratorFailure("Question generator returned an empty question")

        return GeneratedQuestion(
            text=text,
            difficulty=difficulty,
            question_number=ctx.question_number,
            question_type=QuestionType(ctx.question_type),
            source=self.source,
            resume_claim=ctx.resume_claim if ctx.question_type == QuestionType.RESUME else None,
        )


class TimeoutFallbackGenerator(QuestionGenerator):
    """Runs `primary` under a hard timeout, answering from `fallback` when it fails."""

    def __init__(self, primary: QuestionGenerator, fallback: QuestionGenerator, timeout: float, max_workers: int = 4):
        self.primary = primary
        self.fallback = fallback
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="question-gen")

    @property
    def source(self):
        return self.primary.source

    def generate(self, ctx: QuestionContext) -> GeneratedQuestion:
        future = self._executor.submit(self.primary.generate, ctx)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(
                "Question generator timed out after %.1fs for question %s; using fallback pool",
                self.timeout, ctx.question_number,
            )
        except Exception as e:
            logger.warning("Question generator failed for question %s: %s; using fallback pool", ctx.question_number, e)
        return self.fallback.generate(ctx)


def build_question_generator() -> QuestionGenerator:
    if settings.OPENAI_API_KEY:
        return TimeoutFallbackGenerator(
            OpenAIQuestionGenerator(),
            FallbackQuestionPool(),
            timeout=settings.QUESTION_GENERATOR_TIMEOUT_SEC,
        )
    logger.info("OPENAI_API_KEY not set; questions come from the fallback pool")
    return FallbackQuestionPool()
