import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_engine.api.v1 import auth, sessions, violations, reports, realtime
from interview_engine.core.config import settings
from interview_engine.core.database import init_db
from interview_engine.core.errors import InterviewError
from interview_engine.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s started", settings.PROJECT_NAME)
    yield


async def interview_error_handler(request: Request, exc: InterviewError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Backend for proctored, adaptive candidate interviews",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InterviewError, interview_error_handler)

    # Health check
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "ok"}

    # API Routers
    app.include_router(auth.router, prefix=settings.API_V1_PREFIX, tags=["Auth"])
    app.include_router(sessions.router, prefix=settings.API_V1_PREFIX, tags=["Sessions"])
    app.include_router(violations.router, prefix=settings.API_V1_PREFIX, tags=["Violations"])
    app.include_router(reports.router, prefix=settings.API_V1_PREFIX, tags=["Scores & Reports"])
    app.include_router(realtime.router, tags=["Realtime"])

    return app


app = create_app()
