"""
Authentication routes.

POST  /signup                      — create an account (201)
POST  /signin                      — issue a session token (cookie + body)
POST  /signout                     — clear the session cookie (auth)
PATCH /send-verification-code      — email a verification code (auth)
PATCH /verify-verification-code    — consume a verification code (auth)
PATCH /change-password             — replace the password (auth)
POST  /send-forgot-password-code   — email a reset code
POST  /verify-forgot-password-code — check a reset code without consuming it
POST  /reset-password              — consume a reset code and set a password

Signout does not revoke the token server-side; it stays valid until it
expires.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from config import AppSettings
from dependencies import (
    SESSION_COOKIE,
    get_credential_service,
    get_current_claims,
    get_settings,
    get_token_issuer,
)
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    VerifyCodeRequest,
    VerifyForgotPasswordCodeRequest,
)
from schemas.dto.responses.auth import AccountProfile, CodeSentResponse, SigninResponse
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.credential_service import CredentialService
from shared.logging import get_logger
from shared.tokens import TokenClaims, TokenIssuer

router = APIRouter(
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
log = get_logger(__name__)


@router.post(
    "/signup", status_code=status.HTTP_201_CREATED, response_model=MessageResponse
)
async def signup(
    body: SignupRequest,
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    await service.signup(body.email, body.password)
    return MessageResponse(success=True, message="Account created!")


@router.post("/signin", response_model=SigninResponse)
async def signin(
    body: SigninRequest,
    response: Response,
    service: CredentialService = Depends(get_credential_service),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: AppSettings = Depends(get_settings),
) -> SigninResponse:
    token, account = await service.signin(body.email, body.password)
    response.set_cookie(
        SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.auth.cookie_secure,
        samesite="strict",
        path="/",
        max_age=tokens.ttl_seconds,
    )
    return SigninResponse(
        message="Login successful",
        token=token,
        user=AccountProfile.from_account(account),
    )


@router.post("/signout", response_model=MessageResponse)
async def signout(
    response: Response,
    claims: TokenClaims = Depends(get_current_claims),
    settings: AppSettings = Depends(get_settings),
) -> MessageResponse:
    response.delete_cookie(
        SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.auth.cookie_secure,
        samesite="strict",
    )
    log.info("signout", account_id=claims.account_id)
    return MessageResponse(success=True, message="Logged out successfully")


@router.patch("/send-verification-code", response_model=CodeSentResponse)
async def send_verification_code(
    claims: TokenClaims = Depends(get_current_claims),
    service: CredentialService = Depends(get_credential_service),
) -> CodeSentResponse:
    expires_in = await service.send_verification_code(claims.account_id)
    return CodeSentResponse(
        message="Verification code sent successfully", expires_in=expires_in
    )


@router.patch("/verify-verification-code", response_model=MessageResponse)
async def verify_verification_code(
    body: VerifyCodeRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    await service.verify_verification_code(claims.account_id, body.provided_code)
    return MessageResponse(success=True, message="Account verified successfully")


@router.patch("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    claims: TokenClaims = Depends(get_current_claims),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    await service.change_password(
        claims.account_id, body.old_password, body.new_password
    )
    return MessageResponse(success=True, message="Password changed successfully")


@router.post("/send-forgot-password-code", response_model=CodeSentResponse)
async def send_forgot_password_code(
    body: ForgotPasswordRequest,
    service: CredentialService = Depends(get_credential_service),
) -> CodeSentResponse:
    expires_in = await service.send_forgot_password_code(body.email)
    return CodeSentResponse(
        message="Forgot password code sent successfully", expires_in=expires_in
    )


@router.post("/verify-forgot-password-code", response_model=MessageResponse)
async def verify_forgot_password_code(
    body: VerifyForgotPasswordCodeRequest,
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    await service.verify_forgot_password_code(body.email, body.code)
    return MessageResponse(success=True, message="Code verified successfully")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    await service.reset_password(body.email, body.code, body.new_password)
    return MessageResponse(success=True, message="Password reset successfully")
