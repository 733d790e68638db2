"""Authentication collaborator seen from the tracker's side.

The sign-in handshake lives with the hosted identity provider; the core
only needs an opaque user id plus login/logout hooks.
"""

from __future__ import annotations

from typing import Optional, Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)

GUEST_USER_ID = "guest"


class AuthProvider(Protocol):
    """Anything that can tell us who is signed in."""

    def current_user_id(self) -> Optional[str]:  # pragma: no cover - interface
        ...

    def login(self) -> str:  # pragma: no cover - interface
        ...

    def logout(self) -> None:  # pragma: no cover - interface
        ...


class LocalAuthProvider:
    """Offline provider: a fixed local identity, signed in on ``login``."""

    def __init__(self, user_id: str = GUEST_USER_ID, *, signed_in: bool = True) -> None:
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValueError("user_id must be a non-empty string")
        self._user_id = user_id
        self._signed_in = signed_in

    def current_user_id(self) -> Optional[str]:
        return self._user_id if self._signed_in else None

    def login(self) -> str:
        self._signed_in = True
        logger.info("User signed in", extra={"user_id": self._user_id})
        return self._user_id

    def logout(self) -> None:
        self._signed_in = False
        logger.info("User signed out", extra={"user_id": self._user_id})


__all__ = ["AuthProvider", "GUEST_USER_ID", "LocalAuthProvider"]
