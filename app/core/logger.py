import sys
import inspect
import logging

from loguru import logger

from app.core.config import settings

# Librerías cuyo logging estándar se reenvía a loguru, con su nivel mínimo
STDLIB_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "multipart": logging.WARNING,
}

DEV_FORMAT = (
    "<dim>{time:HH:mm:ss.SSS}</dim> <level>{level: <7}</level> "
    "<cyan>{name}</cyan> {message}"
)
ERROR_FILE_FORMAT = "{time:YYYY-MM-DDTHH:mm:ssZZ} {level} {name}:{function}:{line} {message}"


class InterceptHandler(logging.Handler):
    """Pasa cada LogRecord de la librería estándar a loguru conservando el origen."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Sube hasta salir del módulo logging para que {name}/{line} apunten al llamante
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def console_options(environment: str) -> dict:
    """En producción, una línea JSON por evento; en local, texto con color."""
    if environment.lower() == "production":
        return {"serialize": True, "colorize": False}
    return {"format": DEV_FORMAT, "colorize": None}


def setup_logging() -> None:
    logger.remove()
    logger.add(sys.stdout, level=settings.log_level.upper(), **console_options(settings.environment))

    if settings.error_log_path:
        # enqueue: varios workers de uvicorn pueden compartir el fichero
        logger.add(
            settings.error_log_path,
            level="ERROR",
            format=ERROR_FILE_FORMAT,
            rotation="10 MB",
            retention="1 month",
            compression="zip",
            enqueue=True,
            backtrace=False,
        )

    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(logging.NOTSET)
    for name, level in STDLIB_LOGGERS.items():
        lib_logger = logging.getLogger(name)
        lib_logger.handlers = []
        lib_logger.propagate = True
        lib_logger.setLevel(level)


__all__ = ["logger", "setup_logging", "console_options"]
