"""Explicit session repository: who is signed in, and who wants to know."""
import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str
    token: str


AuthListener = Callable[[CurrentUser | None], None]


class SessionRepository:
    """Holds the signed-in user and notifies listeners on every change.

    Components that need the caller get this injected instead of reading a
    process-wide global.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._user: CurrentUser | None = None
        self._listeners: list[AuthListener] = []

    def get_current_user(self) -> CurrentUser | None:
        return self._user

    def on_auth_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, user: CurrentUser) -> None:
        with self._lock:
            self._user = user
        logger.info(f"Signed in as {user.username}")
        self._notify(user)

    def sign_out(self) -> None:
        with self._lock:
            if self._user is None:
                return
            self._user = None
        logger.info("Signed out")
        self._notify(None)

    def _notify(self, user: CurrentUser | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)
