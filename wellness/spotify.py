"""
Spotify accounts service token exchange.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
REQUEST_TIMEOUT = 30  # seconds


class SpotifyAuthError(Exception):
    """Raised when the accounts service rejects or fails a token request."""


@dataclass
class SpotifyTokenClient:
    client_id: str
    client_secret: str
    redirect_uri: str
    token_url: str = SPOTIFY_TOKEN_URL
    timeout: float = REQUEST_TIMEOUT

    def exchange_code(self, code: str) -> dict:
        """
        Exchange an authorization code for an access/refresh token pair.

        Returns:
            dict: ``access_token``, ``refresh_token`` and ``expires_in``.
        """
        return self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            }
        )

    def refresh(self, refresh_token: str) -> dict:
        """Exchange a refresh token for a renewed access token."""
        return self._request_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    def _request_token(self, data: dict) -> dict:
        try:
            response = requests.post(
                self.token_url,
                data=data,
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Spotify %s request failed: %s", data["grant_type"], exc)
            raise SpotifyAuthError(str(exc)) from exc
        if "access_token" not in payload:
            raise SpotifyAuthError("token response missing access_token")
        return payload
