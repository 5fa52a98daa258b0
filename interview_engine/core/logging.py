import logging

from interview_engine.core.config import settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        format=LOG_FORMAT,
        level=(level or settings.LOG_LEVEL).upper(),
    )
