# smartcatalog/core/logging.py
import logging
import sys
import colorlog

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Third-party loggers kept at WARNING whatever the app level
_NOISY = ("pymongo", "httpx", "httpcore", "openai")


def configure_logging(debug: bool = False) -> None:
    """Colored stdout logging for the app, uvicorn aligned on the same level."""
    level = logging.DEBUG if debug else logging.INFO

    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)


def preview(text: str, limit: int = 100) -> str:
    """User text shortened for log lines."""
    return text if len(text) <= limit else text[:limit] + "..."
