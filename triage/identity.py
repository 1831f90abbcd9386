# triage/identity.py
from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Optional
from uuid import uuid4

from triage.config import get_settings
from triage.errors import IdentityError

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """
    Supplies the user id that finished notes are attributed to.
    """

    @abstractmethod
    def current_identity(self) -> Optional[str]:
        ...

    @abstractmethod
    def establish_identity(self) -> str:
        """
        Sign in and return the new id. Raises IdentityError on failure.
        """
        ...


class TokenOrAnonymousIdentityProvider(IdentityProvider):
    """
    Signs in with a configured token when there is one, otherwise
    anonymously (if allowed). The id is kept for the life of the provider.
    """

    def __init__(self, auth_token: Optional[str] = None, allow_anonymous: bool = True):
        self._auth_token = auth_token
        self._allow_anonymous = allow_anonymous
        self._user_id: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "TokenOrAnonymousIdentityProvider":
        settings = get_settings()
        return cls(
            auth_token=settings.auth_token,
            allow_anonymous=settings.allow_anonymous_auth,
        )

    def current_identity(self) -> Optional[str]:
        return self._user_id

    def establish_identity(self) -> str:
        if self._auth_token:
            digest = hashlib.sha256(self._auth_token.encode("utf-8")).hexdigest()
            self._user_id = f"user-{digest[:16]}"
        elif self._allow_anonymous:
            self._user_id = f"anon-{uuid4().hex[:12]}"
        else:
            raise IdentityError("No auth token configured and anonymous sign-in is disabled")

        logger.info("Established identity %s", self._user_id)
        return self._user_id
