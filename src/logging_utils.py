from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Names the library modules get from logging.getLogger(__name__).
LIBRARY_LOGGER_NAMES = ("metadata_fetcher", "pipeline", "library_store", "library_actions")


def _attach_handlers(logger: logging.Logger, level: int, log_file: Path | None) -> None:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8", mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def setup_logger(name: str, debug: bool, log_file: Path | None = None) -> logging.Logger:
    """Configure and return the entry-point logger ``name``.

    The loggers used by the library modules get the same handlers so a
    save that runs inside the service or the CLI ends up in one stream.
    Calling this twice for the same name is a no-op.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = logging.DEBUG if debug else logging.INFO
    for target in (logger, *(logging.getLogger(n) for n in LIBRARY_LOGGER_NAMES)):
        if target.handlers:
            continue
        target.setLevel(level)
        _attach_handlers(target, level, log_file)
        target.propagate = False
    return logger
