"""
Session token issuing and verification (HS256 JWT via PyJWT).

A token is a snapshot: it carries the account id and the ``verified`` flag
as they were at issuance, and is valid for a fixed window afterwards.

verify() never tells the caller *why* a token was rejected. Bad signature,
expiry, malformed input and missing claims all raise the same
AuthenticationError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import jwt
from pydantic import BaseModel, ConfigDict

from config import AuthSettings
from errors import AuthenticationError, ConfigurationError

ALGORITHM = "HS256"
BEARER_PREFIX = "bearer "


class TokenClaims(BaseModel):
    """Decoded session claims."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    verified: bool
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    def __init__(self, secret: str, ttl_seconds: int = 86400) -> None:
        if not secret:
            raise ConfigurationError("token signing key is not configured")
        self._secret = secret
        self._ttl = ttl_seconds

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "TokenIssuer":
        return cls(settings.token_secret, settings.token_ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def issue(self, account_id: str, verified: bool) -> str:
        issued_at = int(datetime.now(timezone.utc).timestamp())
        claims = {
            "sub": str(account_id),
            "verified": bool(verified),
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: Optional[str]) -> TokenClaims:
        if not token:
            raise AuthenticationError("Unauthorized")
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
            )
            return TokenClaims(
                account_id=claims["sub"],
                verified=bool(claims.get("verified", False)),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
            raise AuthenticationError("Unauthorized") from None


def strip_bearer(raw: Optional[str]) -> Optional[str]:
    """Accept ``<token>`` or ``Bearer <token>`` and return the bare token."""
    if raw is None:
        return None
    raw = raw.strip()
    if raw.lower().startswith(BEARER_PREFIX):
        raw = raw[len(BEARER_PREFIX):].strip()
    return raw or None
