"""Background purge of expired login sessions."""
import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

from certprep.config import SESSION_CLEANUP_INTERVAL_SECONDS
from certprep.database import SessionLocal
from certprep.services.auth_service import cleanup_expired_sessions

logger = logging.getLogger(__name__)


def purge_expired_sessions(session_factory=SessionLocal) -> int:
    """Delete expired/invalidated login sessions. Returns rows removed."""
    db = session_factory()
    try:
        deleted = cleanup_expired_sessions(db)
    finally:
        db.close()
    if deleted > 0:
        logger.info(f"Cleaned up {deleted} expired sessions")
    return deleted


def schedule_sessions_cleanup(
    interval_seconds: int = SESSION_CLEANUP_INTERVAL_SECONDS,
) -> threading.Event:
    """Run ``purge_expired_sessions`` periodically on a daemon thread.

    Returns an event that stops the loop when set.
    """
    stop = threading.Event()

    def _worker() -> None:
        # First pass after one minute so startup stays fast
        if stop.wait(60):
            return
        while True:
            try:
                purge_expired_sessions()
            except SQLAlchemyError:
                logger.exception("Session cleanup failed")
            if stop.wait(interval_seconds):
                return

    thread = threading.Thread(
        target=_worker,
        name="sessions_cleanup",
        daemon=True,
    )
    thread.start()
    return stop
