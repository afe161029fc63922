from __future__ import annotations

import json
import logging
import secrets
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol
from uuid import UUID

from cryptography.fernet import Fernet, InvalidToken

from magic_yarn.core.settings import get_settings

logger = logging.getLogger(__name__)


class InvalidSessionToken(ValueError):
    """Raised when a session or OAuth state token cannot be trusted."""


class EncryptionProvider(Protocol):
    def encrypt(self, value: str) -> str:
        ...

    def decrypt(self, token: str, ttl: int | None = None) -> str:
        ...


class FernetEncryptionProvider:
    def __init__(self, key: str):
        self._fernet = Fernet(key.encode("utf-8"))

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str, ttl: int | None = None) -> str:
        return self._fernet.decrypt(token.encode("utf-8"), ttl=ttl).decode("utf-8")


@dataclass(slots=True)
class SessionTokenService:
    """Issue and read the encrypted tokens used for sign-in sessions.

    Session tokens carry the user profile id; OAuth state tokens carry a
    random nonce. Both expire through Fernet's embedded timestamp.
    """

    encryption_provider: EncryptionProvider
    session_ttl_seconds: int
    state_ttl_seconds: int = 600

    def issue_session(self, user_id: UUID) -> str:
        payload = {"sub": str(user_id), "iat": int(time.time())}
        return self.encryption_provider.encrypt(json.dumps(payload))

    def read_session(self, token: str) -> UUID:
        try:
            raw = self.encryption_provider.decrypt(token, ttl=self.session_ttl_seconds)
            payload = json.loads(raw)
            return UUID(payload["sub"])
        except (InvalidToken, ValueError, KeyError, TypeError) as exc:
            raise InvalidSessionToken("Invalid or expired session token") from exc

    def issue_state(self) -> str:
        return self.encryption_provider.encrypt(json.dumps({"nonce": secrets.token_urlsafe(16)}))

    def verify_state(self, state: str) -> None:
        try:
            payload = json.loads(self.encryption_provider.decrypt(state, ttl=self.state_ttl_seconds))
        except (InvalidToken, ValueError) as exc:
            raise InvalidSessionToken("Invalid or expired OAuth state") from exc
        if not isinstance(payload, dict) or "nonce" not in payload:
            raise InvalidSessionToken("Malformed OAuth state")


@lru_cache(maxsize=1)
def get_token_service() -> SessionTokenService:
    settings = get_settings()
    key = settings.fernet_key
    if not key:
        # Sessions will not survive a restart without FERNET_KEY.
        logger.warning("FERNET_KEY is not set; using an ephemeral session key (env=%s)", settings.app_env)
        key = Fernet.generate_key().decode("utf-8")
    return SessionTokenService(
        encryption_provider=FernetEncryptionProvider(key),
        session_ttl_seconds=settings.session_ttl_seconds,
    )
