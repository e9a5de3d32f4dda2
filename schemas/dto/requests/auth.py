"""
Request DTOs for authentication endpoints.

SignupRequest                   — POST /signup
SigninRequest                   — POST /signin
VerifyCodeRequest               — PATCH /verify-verification-code
ChangePasswordRequest           — PATCH /change-password
ForgotPasswordRequest           — POST /send-forgot-password-code
VerifyForgotPasswordCodeRequest — POST /verify-forgot-password-code
ResetPasswordRequest            — POST /reset-password

Field validators raise PydanticCustomError so the first failing rule's
message reaches the client unchanged (see errors.register_error_handlers).
Wire names follow the public API (camelCase); Python names are snake_case.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from shared.validators import (
    PASSWORD_MIN_LENGTH,
    normalize_email,
    validate_code,
    validate_email,
    validate_password,
)

PASSWORD_POLICY_MESSAGE = (
    "Password must contain at least 8 characters with one lowercase, "
    "one uppercase, and one digit"
)
NEW_PASSWORD_POLICY_MESSAGE = (
    "New password must contain at least 8 characters with one lowercase, "
    "one uppercase, and one digit"
)


def _check_email(v: str) -> str:
    v = normalize_email(v)
    message = validate_email(v)
    if message:
        raise PydanticCustomError("email_invalid", message)
    return v


def _check_min_length(v: str, label: str) -> str:
    if len(v) < PASSWORD_MIN_LENGTH:
        raise PydanticCustomError(
            "password_too_short",
            "{label} must have at least {min} characters",
            {"label": label, "min": PASSWORD_MIN_LENGTH},
        )
    return v


def _check_policy(v: str, message: str) -> str:
    if not validate_password(v):
        raise PydanticCustomError("password_policy", message)
    return v


def _check_code(v: str) -> str:
    if not validate_code(v):
        raise PydanticCustomError("code_invalid", "Code must be exactly 6 digits")
    return v


class _AuthRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(_AuthRequest):
    """Request body for POST /signup."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_policy(_check_min_length(v, "Password"), PASSWORD_POLICY_MESSAGE)


class SigninRequest(_AuthRequest):
    """Request body for POST /signin."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_min_length(v, "Password")


class VerifyCodeRequest(_AuthRequest):
    """Request body for PATCH /verify-verification-code.

    ``providedCode`` is the 6-digit code sent to the account's email.
    """

    provided_code: str = Field(alias="providedCode")

    @field_validator("provided_code")
    @classmethod
    def _code(cls, v: str) -> str:
        return _check_code(v)


class ChangePasswordRequest(_AuthRequest):
    """Request body for PATCH /change-password."""

    old_password: str = Field(alias="oldPassword")
    new_password: str = Field(alias="newPassword")

    @field_validator("old_password")
    @classmethod
    def _old(cls, v: str) -> str:
        return _check_min_length(v, "Old password")

    @field_validator("new_password")
    @classmethod
    def _new(cls, v: str) -> str:
        return _check_policy(
            _check_min_length(v, "New password"), NEW_PASSWORD_POLICY_MESSAGE
        )


class ForgotPasswordRequest(_AuthRequest):
    """Request body for POST /send-forgot-password-code."""

    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)


class VerifyForgotPasswordCodeRequest(_AuthRequest):
    """Request body for POST /verify-forgot-password-code."""

    email: str
    code: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("code")
    @classmethod
    def _code(cls, v: str) -> str:
        return _check_code(v)


class ResetPasswordRequest(VerifyForgotPasswordCodeRequest):
    """Request body for POST /reset-password."""

    new_password: str = Field(alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def _new(cls, v: str) -> str:
        return _check_policy(
            _check_min_length(v, "New password"), NEW_PASSWORD_POLICY_MESSAGE
        )
