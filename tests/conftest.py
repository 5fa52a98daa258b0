import os
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

# Ensure env before interview_engine.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""
os.environ["NOTIFY_WEBHOOK_URL"] = ""
os.environ["JWT_SECRET"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

from interview_engine.api import deps  # noqa: E402
from interview_engine.core.database import Base, SessionLocal, engine, get_db, init_db  # noqa: E402
from interview_engine.core.security import create_access_token  # noqa: E402
from interview_engine.main import create_app  # noqa: E402
from interview_engine.models.candidate import Candidate, Recruiter  # noqa: E402
from interview_engine.services import session_service  # noqa: E402
from interview_engine.services.evaluator import AnswerEvaluator, Evaluation  # noqa: E402
from interview_engine.services.notifier import Notifier  # noqa: E402
from interview_engine.services.question_engine import QuestionEngine  # noqa: E402
from interview_engine.services.question_generators import (  # noqa: E402
    GeneratedQuestion,
    QuestionGenerator,
)
from interview_engine.services.realtime import RoomManager  # noqa: E402
from interview_engine.services.scoring_engine import ScoringEngine  # noqa: E402
from interview_engine.utils.enums import QuestionSource, Role  # noqa: E402


class StubEvaluator(AnswerEvaluator):
    """Fixed score per mode; raises for answers containing `fail_marker`."""

    def __init__(self, score=80, scores_by_mode=None, fail_marker=None):
        self.score = score
        self.scores_by_mode = scores_by_mode or {}
        self.fail_marker = fail_marker
        self.calls = []

    def evaluate(self, question, answer, reference_answer=None, mode=None, resume_claim=None):
        self.calls.append((question, answer, mode))
        if self.fail_marker and self.fail_marker in answer:
            raise RuntimeError("evaluator unavailable")
        return Evaluation(score=self.scores_by_mode.get(mode, self.score), feedback="stub")


class StubGenerator(QuestionGenerator):
    source = QuestionSource.AI

    def __init__(self):
        self.contexts = []

    def generate(self, ctx):
        self.contexts.append(ctx)
        n = ctx.question_number
        return GeneratedQuestion(
            text=f"Q{n}: describe concept number {n} ({ctx.question_type.value}, {ctx.difficulty.value})",
            difficulty=ctx.difficulty,
            question_number=n,
            question_type=ctx.question_type,
            source=self.source,
            resume_claim=ctx.resume_claim,
        )


class ScriptedGenerator(QuestionGenerator):
    """Returns the given texts in order."""

    source = QuestionSource.AI

    def __init__(self, texts):
        self.texts = list(texts)
        self.contexts = []

    def generate(self, ctx):
        self.contexts.append(ctx)
        return GeneratedQuestion(
            text=self.texts.pop(0),
            difficulty=ctx.difficulty,
            question_number=ctx.question_number,
            question_type=ctx.question_type,
            source=self.source,
            resume_claim=ctx.resume_claim,
        )


class RecordingNotifier(Notifier):
    def __init__(self, result=True):
        self.result = result
        self.sent = []

    def notify(self, event, recipient, payload):
        self.sent.append((event, recipient, payload))
        return self.result


@pytest.fixture()
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def evaluator():
    return StubEvaluator()


@pytest.fixture()
def generator():
    return StubGenerator()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def question_engine(generator):
    return QuestionEngine(generator)


@pytest.fixture()
def scoring_engine(evaluator):
    return ScoringEngine(evaluator, max_workers=2)


@pytest.fixture()
def recruiter(db):
    recruiter = Recruiter(id=str(uuid4()), full_name="Rita Recruiter", email="rita@example.com", company="Acme")
    db.add(recruiter)
    db.commit()
    return recruiter


@pytest.fixture()
def candidate(db):
    candidate = Candidate(
        id=str(uuid4()),
        full_name="Casey Candidate",
        email="casey@example.com",
        skills=["Python", "PostgreSQL"],
        experience="4 years backend development",
    )
    db.add(candidate)
    db.commit()
    return candidate


@pytest.fixture()
def scheduled_session(db, recruiter, candidate, question_engine, notifier):
    session, _ = session_service.schedule_session(
        db, recruiter.id, candidate.id, question_engine, notifier,
    )
    return session


@pytest.fixture()
def active_session(db, scheduled_session, candidate):
    return session_service.start_session(
        db, scheduled_session.id, candidate.id,
        device_fingerprint={"ua": "pytest"},
        now=datetime.utcnow(),
    )


@pytest.fixture()
def rooms():
    return RoomManager()


@pytest.fixture()
def app(db, question_engine, scoring_engine, notifier, rooms):
    application = create_app()

    def override_get_db():
        yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[deps.get_question_engine] = lambda: question_engine
    application.dependency_overrides[deps.get_scoring_engine] = lambda: scoring_engine
    application.dependency_overrides[deps.get_notifier] = lambda: notifier
    application.dependency_overrides[deps.get_room_manager] = lambda: rooms
    return application


@pytest.fixture()
def client(app):
    return TestClient(app)


def bearer(user_id, role: Role, session_id=None, expires_delta=None) -> dict:
    token = create_access_token(user_id, role.value, session_id=session_id, expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def recruiter_headers(recruiter):
    return bearer(recruiter.id, Role.RECRUITER)


@pytest.fixture()
def candidate_headers(candidate, scheduled_session):
    return bearer(candidate.id, Role.CANDIDATE, session_id=scheduled_session.id)


def minutes_ago(minutes: int) -> datetime:
    return datetime.utcnow() - timedelta(minutes=minutes)
