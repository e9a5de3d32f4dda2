"""
Account document model.

Maps to the `users` MongoDB collection.

An account holds its credential material and at most one pending code per
purpose. A pending code is a (code_hash, expires_at) pair; it can only be
built through PendingCode.issue() or from a stored document carrying both
fields, so a code without a recorded issuance is never active.

code_hash stores HMAC-SHA256(code); the plaintext code is never stored.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from schemas.models.base import MongoBaseModel, as_utc, utcnow

EMAIL_MIN_LENGTH = 5

CODE_PURPOSE_EMAIL_VERIFICATION = "email_verification"
CODE_PURPOSE_PASSWORD_RESET = "password_reset"


class PendingCode(BaseModel):
    """A hashed one-time code and the instant it stops being accepted."""

    model_config = ConfigDict(frozen=True)

    code_hash: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _expires_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @classmethod
    def issue(
        cls, code_hash: str, ttl_seconds: int, issued_at: Optional[datetime] = None
    ) -> "PendingCode":
        issued_at = issued_at or utcnow()
        return cls(code_hash=code_hash, expires_at=issued_at + timedelta(seconds=ttl_seconds))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now > self.expires_at


class AccountDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    email: str
    password_hash: str
    verified: bool = False
    pending_verification_code: Optional[PendingCode] = None
    pending_reset_code: Optional[PendingCode] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if len(v) < EMAIL_MIN_LENGTH:
            raise ValueError(f"Email must have at least {EMAIL_MIN_LENGTH} characters")
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None

    @property
    def account_id(self) -> str:
        return str(self.id)

    def touch(self) -> None:
        self.updated_at = utcnow()
