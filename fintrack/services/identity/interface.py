"""
Identity Provider Interface

DESIGN DECISION: The core never handles credentials. It only asks "who is
signed in right now?" and listens for session transitions. Whatever performs
the actual sign-in (an OAuth flow, a hosted auth SDK, a test fixture) sits
behind this interface.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from fintrack.models import User


logger = structlog.get_logger(__name__)

SessionCallback = Callable[[Optional[User]], None]


class IdentityProvider(ABC):
    """Abstract source of the current user."""

    @abstractmethod
    def current_user(self) -> Optional[User]:
        """The signed-in user, or None when nobody is signed in."""
        pass

    @abstractmethod
    def on_change(self, callback: SessionCallback) -> Callable[[], None]:
        """
        Register a callback fired on every session transition.

        The callback receives the new user (None after sign-out).

        Returns:
            A function that unregisters the callback
        """
        pass


class SessionIdentityProvider(IdentityProvider):
    """
    In-process identity provider.

    The hosting application calls sign_in/sign_out when its own auth layer
    reports a transition; tests drive it directly.
    """

    def __init__(self, user: Optional[User] = None):
        self._user = user
        self._callbacks: list[SessionCallback] = []

    def current_user(self) -> Optional[User]:
        return self._user

    def on_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def sign_in(self, user: User) -> None:
        self._user = user
        logger.info("session_signed_in", user_id=user.id)
        self._fire()

    def sign_out(self) -> None:
        previous = self._user
        self._user = None
        logger.info("session_signed_out", user_id=previous.id if previous else None)
        self._fire()

    def _fire(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._user)
            except Exception as e:
                # A broken listener must not break the session transition
                logger.error("session_callback_failed", error=str(e))
