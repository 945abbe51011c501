from __future__ import annotations
import logging
from typing import Callable, List, Optional, Protocol

from .errors import AuthError

logger = logging.getLogger(__name__)

class AuthSession(Protocol):
    """What the client needs from whoever owns the login session."""

    @property
    def token(self) -> Optional[str]: ...

    def session_expired(self, error: AuthError) -> None: ...

class TokenSession:
    def __init__(self, token: Optional[str] = None):
        self._token = token
        self._listeners: List[Callable[[AuthError], None]] = []

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def on_expired(self, callback: Callable[[AuthError], None]) -> None:
        self._listeners.append(callback)

    def session_expired(self, error: AuthError) -> None:
        logger.info("Session expired: %s", error.message)
        self.clear_token()
        for callback in list(self._listeners):
            callback(error)
