"""
Classification of the live backend session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .models import SessionClassification

if TYPE_CHECKING:
    from . import BackendSessionClient, BackendUser


class SessionStateInspector:
    """Reports whether the backend session is absent, anonymous or authenticated.

    The session can change between calls (token expiry, sign-out elsewhere),
    so every call reads the client's current user; nothing is cached.
    """

    def __init__(self, client: BackendSessionClient) -> None:
        self.client = client

    @property
    def current_user(self) -> Optional[BackendUser]:
        return self.client.current_user

    def classify(self) -> SessionClassification:
        user = self.client.current_user
        if user is None:
            return SessionClassification.ABSENT
        if user.is_anonymous:
            return SessionClassification.ANONYMOUS
        return SessionClassification.AUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.classify() is SessionClassification.AUTHENTICATED
