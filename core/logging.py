"""Logging configuration shared by the API process and its background jobs."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure root logging with a console handler.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
        force=True,
    )

    # Uvicorn access logs duplicate our request logging
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger("pulse")
    logger.info(f"Logging initialized at level {log_level}")
    return logger
