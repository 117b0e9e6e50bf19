from __future__ import annotations
import logging

# Libraries that flood the console below WARNING
NOISY_LOGGERS = ("sqlalchemy.engine", "urllib3")


def setup_console_logging(level: int = logging.DEBUG) -> None:
    """
    Call once per process (API server or CLI).
    Sends every module logger to one console handler; timer callbacks run on
    their own threads, so the thread name is part of each line.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s %(name)s (%(threadName)s): %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
