"""Google OAuth2 client."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from ..config import GoogleConfig
from ..errors import AuthMessage, InternalServerError, Unauthorized

logger = logging.getLogger(__name__)


@dataclass
class GoogleProfile:
    """Identity asserted by Google after the redirect handshake."""
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class GoogleOAuthClient:
    """Handle the Google authorization code flow."""

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
    SCOPES = ["openid", "email", "profile"]

    def __init__(self, config: GoogleConfig, timeout: float = 10.0):
        self.config = config
        self._client = httpx.AsyncClient(timeout=timeout)

        if not config.client_id or not config.client_secret:
            logger.warning("Google OAuth credentials not set, Google login disabled")

    def is_configured(self) -> bool:
        return bool(self.config.client_id and self.config.client_secret)

    def authorization_url(self, state: str) -> str:
        """Build the consent screen URL."""
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """
        Exchange an authorization code and read the user's profile.

        Raises:
            Unauthorized: Google rejected the code or returned no verified email
            InternalServerError: Google could not be reached
        """
        if not self.is_configured():
            raise InternalServerError("GOOGLE: OAuth client not configured")

        try:
            response = await self._client.post(self.TOKEN_URL, data={
                "code": code,
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "redirect_uri": self.config.redirect_uri,
                "grant_type": "authorization_code",
            })
            if response.status_code >= 400:
                logger.warning(f"Google token exchange failed: {response.text}")
                raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED)

            access_token = response.json()["access_token"]

            response = await self._client.get(
                self.USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Google OAuth request failed: {e}")
            raise InternalServerError(f"GOOGLE: {e}") from e

        if not data.get("email"):
            raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED)

        if data.get("email_verified") not in (True, "true"):
            logger.warning(f"Google returned unverified email {data['email']}")
            raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED)

        return GoogleProfile(
            email=data["email"],
            first_name=data.get("given_name"),
            last_name=data.get("family_name"),
            picture=data.get("picture"),
        )

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
