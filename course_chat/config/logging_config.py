# course_chat/config/logging_config.py
import logging

from course_chat.config.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # engine echo is controlled by settings.debug, keep the rest of sqlalchemy quiet
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
