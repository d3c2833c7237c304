"""
Token acquisition for user-level workflows.

The production BFF only accepts user JWTs.  Rather than sharing one
long-lived token across all virtual users, each iteration asks the
token-issuing endpoint (FusionAuth's JWT vend API) for a fresh token
with its own claims, then threads that token through the requests of the
same iteration.  Nothing is cached between iterations, and there is no
retry: a failed issuance is logged, marked as a failed request, and the
caller decides whether to continue.

Token structure (claims sent to the issuer):
    - ``sub``      -- synthetic subject, ``load-test-user-<user_id>``.
    - ``user_id``  -- integer id of the simulated user.
    - ``seller_profile_id`` -- optional, only when the workflow targets a
      specific profile.
    - ``iat`` / ``exp`` -- issued-at / expiry as UTC epoch seconds.

Key Concepts Demonstrated:
- Side-call to an external issuer through the same Locust session, so
  issuance latency shows up in the run statistics
- ``None`` sentinel on failure instead of exceptions for expected errors
- Reading (not verifying) JWT claims with PyJWT to spot expired tokens
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from loadtests.config import Config

logger = logging.getLogger(__name__)

TOKEN_ISSUER_NAME = "token-issuer [POST]"


class TokenIssuanceError(ValueError):
    """Raised when the issuer answers 200 with a body that is not JSON."""


def build_claims(
    user_id: int,
    *,
    seller_profile_id: str | None = None,
    expiry_minutes: int = 60,
) -> dict[str, Any]:
    """
    Build the claims payload for a simulated user.

    Args:
        user_id: Synthetic user id.  Must be a positive integer.
        seller_profile_id: Profile the token should be scoped to, if any.
        expiry_minutes: Minutes from *now* until the token expires.

    Returns:
        A JSON-serialisable claims dictionary.

    Raises:
        ValueError: If *user_id* is not positive.
    """
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=int(expiry_minutes))

    claims: dict[str, Any] = {
        "sub": f"load-test-user-{int(user_id)}",
        "user_id": int(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if seller_profile_id is not None:
        claims["seller_profile_id"] = seller_profile_id
    return claims


def issue_token(
    client: Any,
    *,
    issuer_url: str,
    api_key: str,
    claims: dict[str, Any],
    ttl_seconds: int = 3600,
) -> str | None:
    """
    Ask the issuer for a signed JWT carrying *claims*.

    Args:
        client: The Locust HTTP session.  *issuer_url* is absolute, so the
            call bypasses the session's base URL.
        issuer_url: Full URL of the issuance endpoint.
        api_key: Issuer API key, sent as the raw ``Authorization`` value.
        claims: Claims to embed, see :func:`build_claims`.
        ttl_seconds: Lifetime requested from the issuer.

    Returns:
        The token string on ``200`` with a non-empty ``token`` field,
        ``None`` otherwise.

    Raises:
        TokenIssuanceError: If the issuer returns ``200`` with a body that
            cannot be parsed as JSON.
    """
    with client.post(
        issuer_url,
        json={"claims": claims, "timeToLiveInSeconds": int(ttl_seconds)},
        headers={"Authorization": api_key, "Content-Type": "application/json"},
        name=TOKEN_ISSUER_NAME,
        catch_response=True,
    ) as response:
        if response.status_code != 200:
            logger.error("Token issuance failed: %s %s", response.status_code, response.text)
            response.failure(f"Expected 200, got {response.status_code}")
            return None

        try:
            body = response.json()
        except ValueError as exc:
            response.failure("Token response is not valid JSON")
            raise TokenIssuanceError("Token response is not valid JSON") from exc

        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("Token issuance response missing token")
            response.failure("Token response missing token")
            return None

        response.success()
        return token


@dataclass(frozen=True)
class TokenIssuer:
    """Issuer endpoint plus the credentials needed to call it."""

    url: str | None
    api_key: str | None
    ttl_seconds: int = 3600

    @classmethod
    def from_config(cls, config: type[Config]) -> TokenIssuer:
        return cls(
            url=config.TOKEN_ISSUER_URL,
            api_key=config.FUSIONAUTH_API_KEY,
            ttl_seconds=config.TOKEN_TTL_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.url) and bool(self.api_key)

    def issue(self, client: Any, user_id: int, *, seller_profile_id: str | None = None) -> str | None:
        """Build claims for *user_id* and request a token; ``None`` if unconfigured or refused."""
        if not self.configured:
            logger.error("TOKEN_ISSUER_URL and FUSIONAUTH_API_KEY are required to issue tokens")
            return None

        claims = build_claims(
            user_id,
            seller_profile_id=seller_profile_id,
            expiry_minutes=max(1, self.ttl_seconds // 60),
        )
        return issue_token(
            client,
            issuer_url=self.url,
            api_key=self.api_key,
            claims=claims,
            ttl_seconds=self.ttl_seconds,
        )


def token_expiry(token: str) -> datetime | None:
    """
    Return the ``exp`` of *token* as an aware UTC datetime.

    The signature is NOT verified: the suite only wants to warn the
    operator about a stale pre-generated token before hammering the API
    with it.  Returns ``None`` if the token cannot be decoded or carries
    no numeric ``exp``.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)
