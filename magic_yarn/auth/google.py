"""Google OAuth 2.0 authorization-code sign-in.

The browser is sent to Google's consent screen with a signed ``state``;
Google redirects back with a ``code`` which is exchanged for an access
token and then for the user's OpenID profile.  HTTP calls are synchronous
``httpx`` requests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from magic_yarn.core.settings import get_settings

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

REQUEST_TIMEOUT_S = 10


class GoogleOAuthError(RuntimeError):
    """Raised when Google sign-in cannot be completed."""


@dataclass(frozen=True, slots=True)
class GoogleUser:
    google_sub: str
    email: str
    email_verified: bool
    full_name: str | None
    avatar_url: str | None


class GoogleOAuthProvider:
    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
    ) -> None:
        settings = get_settings()
        self.client_id = client_id if client_id is not None else settings.google_client_id
        self.client_secret = client_secret if client_secret is not None else settings.google_client_secret
        self.redirect_uri = redirect_uri if redirect_uri is not None else settings.google_redirect_uri

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "online",
            "prompt": "select_account",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> dict:
        try:
            response = httpx.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                },
                timeout=REQUEST_TIMEOUT_S,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GoogleOAuthError(f"Token exchange failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise GoogleOAuthError(f"Token exchange request failed: {exc}") from exc
        return response.json()

    def get_user_info(self, access_token: str) -> dict:
        try:
            response = httpx.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=REQUEST_TIMEOUT_S,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GoogleOAuthError(f"User info request failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise GoogleOAuthError(f"User info request failed: {exc}") from exc
        return response.json()

    def authenticate(self, code: str) -> GoogleUser:
        """Exchange *code* and return the signed-in Google account.

        Raises :class:`GoogleOAuthError` when the exchange fails or the
        account has no verified e-mail address.
        """
        if not self.configured:
            raise GoogleOAuthError("Google sign-in is not configured")

        tokens = self.exchange_code(code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise GoogleOAuthError("No access token received from Google")

        info = self.get_user_info(access_token)
        email = (info.get("email") or "").strip().lower()
        if not info.get("sub") or not email:
            raise GoogleOAuthError("Google profile is missing an account id or e-mail")
        if not info.get("email_verified", False):
            raise GoogleOAuthError("Google e-mail address is not verified")

        logger.info("Google sign-in completed for account %s", info["sub"])
        return GoogleUser(
            google_sub=str(info["sub"]),
            email=email,
            email_verified=True,
            full_name=info.get("name") or None,
            avatar_url=info.get("picture") or None,
        )
