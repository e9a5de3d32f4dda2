"""
Response DTOs for authentication endpoints.

AccountProfile      — public view of an account (never carries hashes)
SigninResponse      — POST /signin  (200)
CodeSentResponse    — PATCH /send-verification-code, POST /send-forgot-password-code
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.account import AccountDoc


class AccountProfile(BaseModel):
    """Account fields safe to return to the client."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    verified: bool

    @classmethod
    def from_account(cls, account: AccountDoc) -> "AccountProfile":
        return cls(id=account.account_id, email=account.email, verified=account.verified)


class SigninResponse(BaseModel):
    """Response body for POST /signin (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    token: str
    user: AccountProfile


class CodeSentResponse(BaseModel):
    """Response body for the two code-sending endpoints (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    expires_in: int
