"""Google sign-in for HabitGrid.

Implements the OAuth 2.0 authorization-code flow against Google's
endpoints: build the consent URL, exchange the returned code for an
access token plus ID token, decode the user's profile from the ID
token, and cache the session (profile, bearer token, expiry) next to
the habit data so a restart does not force a new sign-in while the
token is still valid.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

import requests

from habitgrid.constants import GOOGLE_AUTH_URL, GOOGLE_REVOKE_URL, GOOGLE_SCOPES, GOOGLE_TOKEN_URL
from habitgrid.errors import AuthError
from habitgrid.models import OAuthClientConfig, UserProfile, UserSession
from habitgrid.storage import clear_session, load_session, save_session

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


def now_ms() -> int:
    return int(time.time() * 1000)


def decode_id_token(credential: str) -> UserProfile:
    """Read the profile claims from a JWT's payload segment.

    The token comes straight from Google's token endpoint over TLS, so the
    signature is not re-verified here.
    """
    parts = credential.split(".")
    if len(parts) != 3:
        raise AuthError("Malformed ID token")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (ValueError, UnicodeDecodeError) as e:
        raise AuthError(f"Malformed ID token: {e}") from e
    return UserProfile(
        id=str(claims.get("sub", "")),
        email=str(claims.get("email", "")),
        name=str(claims.get("name", "")),
        picture=str(claims.get("picture", "") or ""),
        verified=bool(claims.get("email_verified", False)),
    )


class GoogleAuth:
    """Holds the signed-in user and their Drive access token."""

    def __init__(
        self,
        config: OAuthClientConfig | None = None,
        root: Path | None = None,
        http: requests.Session | None = None,
    ) -> None:
        self.config = config or OAuthClientConfig.from_env()
        self.root = root
        self.http = http or requests.Session()
        self.session: UserSession | None = None

    # ── State ─────────────────────────────────────────────────

    @property
    def user(self) -> UserProfile | None:
        return self.session.user if self.session else None

    @property
    def access_token(self) -> str | None:
        return self.session.access_token if self.session else None

    def is_authenticated(self) -> bool:
        return self.session is not None and self.session.is_valid(now_ms())

    def load_saved_session(self) -> UserSession | None:
        """Restore the cached session if its token has not expired yet."""
        saved = load_session(self.root)
        if saved is None:
            return None
        if not saved.is_valid(now_ms()):
            logger.info("Saved Google session for %s has expired", saved.user.email or "unknown user")
            return None
        self.session = saved
        return saved

    # ── Flow ──────────────────────────────────────────────────

    def authorization_url(self, state: str) -> str:
        if not self.config.client_id:
            raise AuthError("Google sign-in is not configured (GOOGLE_CLIENT_ID missing)")
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "access_type": "online",
            "prompt": "consent",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> UserSession:
        """Trade an authorization code for tokens and cache the new session."""
        if not self.config.is_configured():
            raise AuthError("Google sign-in is not configured")
        try:
            resp = self.http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "redirect_uri": self.config.redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Token exchange request failed: %s", e)
            raise AuthError("Failed to connect to Google") from e

        body = _json_body(resp)
        if resp.status_code != 200 or "access_token" not in body:
            error = body.get("error_description") or body.get("error") or f"HTTP {resp.status_code}"
            logger.error("Token exchange rejected: %s", error)
            raise AuthError(f"Failed to get Drive access: {error}")

        if body.get("id_token"):
            profile = decode_id_token(body["id_token"])
        else:
            profile = UserProfile()

        now = now_ms()
        self.session = UserSession(
            user=profile,
            access_token=str(body["access_token"]),
            token_expiry=now + int(body.get("expires_in", 3600)) * 1000,
            last_login=now,
        )
        save_session(self.session, self.root)
        logger.info("Signed in as %s", profile.email or profile.id or "unknown user")
        return self.session

    def logout(self) -> None:
        """Revoke the token (best effort) and forget the cached session."""
        token = self.access_token
        if token:
            try:
                self.http.post(
                    GOOGLE_REVOKE_URL,
                    params={"token": token},
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.warning("Token revoke failed: %s", e)
        self.session = None
        clear_session(self.root)

    def auth_headers(self) -> dict[str, str]:
        if not self.is_authenticated():
            raise AuthError("Not authenticated with Google")
        return {"Authorization": f"Bearer {self.access_token}"}


def _json_body(resp: requests.Response) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
