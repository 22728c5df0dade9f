import inspect
import logging
import sys

from loguru import logger

from endcat.core.config import settings


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller that issued the logged message
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_file: str) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "httpx", "sqlalchemy.engine"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    # SQL echo is only useful while developing
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.is_dev else logging.WARNING)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.is_dev else "INFO")
    logger.add(f"logs/{log_file}", rotation="1 week", retention="1 month", level="DEBUG")
