"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Long-lived objects (settings, repository,
service, token issuer) are built once in create_app() and kept on app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Cookie, Depends, Header, Request

from config import AppSettings
from services.credential_service import CredentialService
from shared.tokens import TokenClaims, TokenIssuer, strip_bearer

SESSION_COOKIE = "Authorization"
NON_BROWSER_CLIENT = "not-browser"


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credential_service


def get_current_claims(
    client: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
    authorization_cookie: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """Resolve the session claims for the current request.

    Non-browser clients (``client: not-browser``) send the token in the
    Authorization header, raw or as ``Bearer <token>``; browsers send the
    Authorization cookie. Any failure is a plain 401.
    """
    if client == NON_BROWSER_CLIENT:
        raw = authorization
    else:
        raw = authorization_cookie
    return tokens.verify(strip_bearer(raw))
