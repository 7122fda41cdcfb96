"""Google sign-in: ID token verification and authorization code exchange."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import GoogleConfig
from ..errors import InternalError, UnauthorizedError

TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}
_TIMEOUT = httpx.Timeout(10.0)


@dataclass(frozen=True, slots=True)
class GoogleProfile:
    google_id: str
    email: str
    name: str
    picture: str | None = None


def _profile_from_claims(claims: dict[str, Any]) -> GoogleProfile:
    google_id = claims.get("sub")
    email = claims.get("email")
    if not google_id or not email:
        raise UnauthorizedError("Google account did not provide an email address")
    verified = claims.get("email_verified", True)
    if verified in (False, "false"):
        raise UnauthorizedError("Google email address is not verified")
    email = str(email).lower()
    return GoogleProfile(
        google_id=str(google_id),
        email=email,
        name=str(claims.get("name") or email.split("@", 1)[0]),
        picture=claims.get("picture"),
    )


class GoogleOAuthClient:
    """Resolve a Google identity from an ID token or an authorization code."""

    def __init__(self, config: GoogleConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._http_client = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            yield client

    def _require_client_id(self) -> str:
        if not self._config.client_id:
            raise InternalError("Google sign-in is not configured")
        return self._config.client_id

    async def verify_id_token(self, id_token: str) -> GoogleProfile:
        client_id = self._require_client_id()
        async with self._client() as client:
            response = await client.get(TOKENINFO_URL, params={"id_token": id_token})
        if response.status_code == httpx.codes.BAD_REQUEST:
            raise UnauthorizedError("Invalid Google token")
        response.raise_for_status()
        claims = response.json()
        if claims.get("aud") != client_id:
            raise UnauthorizedError("Google token was issued for another client")
        if claims.get("iss") and claims["iss"] not in _ISSUERS:
            raise UnauthorizedError("Invalid Google token issuer")
        return _profile_from_claims(claims)

    async def exchange_code(self, code: str) -> GoogleProfile:
        client_id = self._require_client_id()
        if not self._config.client_secret:
            raise InternalError("Google sign-in is not configured")
        async with self._client() as client:
            token_response = await client.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": client_id,
                    "client_secret": self._config.client_secret,
                    "redirect_uri": self._config.redirect_uri or "postmessage",
                    "grant_type": "authorization_code",
                },
            )
            if token_response.status_code in (
                httpx.codes.BAD_REQUEST,
                httpx.codes.UNAUTHORIZED,
            ):
                raise UnauthorizedError("Invalid Google authorization code")
            token_response.raise_for_status()
            access_token = token_response.json().get("access_token")
            if not access_token:
                raise UnauthorizedError("Invalid Google authorization code")
            profile_response = await client.get(
                USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
            )
        profile_response.raise_for_status()
        return _profile_from_claims(profile_response.json())
