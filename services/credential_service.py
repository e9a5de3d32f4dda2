"""
Credential workflow engine.

Each public method is one workflow step: validate preconditions against the
stored account, call the hashers / token issuer, write only the changed fields,
return an outcome. Failures are raised as AppError subclasses and mapped to
HTTP responses by the global handler.

One-time code rules shared by email verification and password reset:
- six digits, stored only as HMAC(code)
- valid for code_ttl_seconds after issuance
- expiry is checked before the digest, so an expired code is reported as
  expired whatever its value
- a mismatch or expiry leaves the stored code in place
- sending a new code replaces the previous one

Password hashing is CPU-bound and runs in a worker thread. Writes that
consume a code or replace the password are conditional on the state they
were checked against; a request that lost a race re-reads the account and
fails with the error that state calls for.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from errors import (
    AuthenticationError,
    BadRequestError,
    CodeExpiredError,
    ConflictError,
    InvalidCodeError,
    NotFoundError,
)
from infrastructure.email.protocol import CodeNotifier
from repositories.account_repository import AccountRepository
from schemas.models.account import (
    CODE_PURPOSE_EMAIL_VERIFICATION,
    CODE_PURPOSE_PASSWORD_RESET,
    AccountDoc,
    PendingCode,
)
from schemas.models.base import utcnow
from shared.crypto import CodeHasher, SecretHasher
from shared.generators import generate_otp_code
from shared.logging import get_logger
from shared.tokens import TokenIssuer

log = get_logger(__name__)


class CredentialService:
    def __init__(
        self,
        accounts: AccountRepository,
        secret_hasher: SecretHasher,
        code_hasher: CodeHasher,
        token_issuer: TokenIssuer,
        notifier: CodeNotifier,
        code_ttl_seconds: int = 600,
    ) -> None:
        self._accounts = accounts
        self._secrets = secret_hasher
        self._codes = code_hasher
        self._tokens = token_issuer
        self._notifier = notifier
        self._code_ttl = code_ttl_seconds

    # ── Helpers ──────────────────────────────────────────────────────────────

    async def _hash_password(self, password: str) -> str:
        return await asyncio.to_thread(self._secrets.hash, password)

    async def _verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self._secrets.verify, password, password_hash)

    async def _get_by_id(self, account_id: str) -> AccountDoc:
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    async def _get_by_email(self, email: str) -> AccountDoc:
        account = await self._accounts.find_by_email(email)
        if account is None:
            raise NotFoundError("User not found")
        return account

    def _new_pending_code(self) -> tuple[str, PendingCode]:
        code = generate_otp_code()
        return code, PendingCode.issue(self._codes.hmac(code), self._code_ttl)

    def _check_code(
        self, pending: Optional[PendingCode], code: str, label: str
    ) -> None:
        """Raise unless *code* matches the still-active *pending* code."""
        if pending is None:
            raise BadRequestError(
                f"No {label} code found. Please request a new one."
            )
        if pending.is_expired():
            raise CodeExpiredError(f"{label.capitalize()} code expired")
        if not self._codes.matches(code, pending.code_hash):
            raise InvalidCodeError(f"Invalid {label} code")

    # ── Signup / signin ──────────────────────────────────────────────────────

    async def signup(self, email: str, password: str) -> AccountDoc:
        if await self._accounts.find_by_email(email) is not None:
            log.warning("registration_failed", reason="email_exists")
            raise ConflictError("User already exists!", field="email")

        now = utcnow()
        account = AccountDoc(
            email=email,
            password_hash=await self._hash_password(password),
            verified=False,
            created_at=now,
            updated_at=now,
        )
        account = await self._accounts.create(account)
        log.info("account_registered", account_id=account.account_id)
        return account

    async def signin(self, email: str, password: str) -> tuple[str, AccountDoc]:
        account = await self._accounts.find_by_email(email)
        if account is None:
            log.warning("signin_failed", reason="account_not_found")
            raise NotFoundError("User not found")

        if not await self._verify_password(password, account.password_hash):
            log.warning(
                "signin_failed", reason="invalid_password", account_id=account.account_id
            )
            raise AuthenticationError("Incorrect password")

        token = self._tokens.issue(account.account_id, account.verified)
        log.info("signin_success", account_id=account.account_id)
        return token, account

    # ── Email verification ───────────────────────────────────────────────────

    async def send_verification_code(self, account_id: str) -> int:
        """Issue a fresh verification code; returns its lifetime in seconds."""
        account = await self._get_by_id(account_id)
        if account.verified:
            raise ConflictError("User already verified")

        code, pending = self._new_pending_code()
        account.pending_verification_code = pending
        account.touch()
        if not await self._accounts.update(
            account, ("pending_verification_code",), expect={"verified": False}
        ):
            raise ConflictError("User already verified")

        await self._notifier.send(account.email, CODE_PURPOSE_EMAIL_VERIFICATION, code)
        log.info("verification_code_sent", account_id=account.account_id)
        return self._code_ttl

    async def verify_verification_code(self, account_id: str, code: str) -> AccountDoc:
        account = await self._get_by_id(account_id)
        self._check_verification_code(account, code)

        consumed = account.pending_verification_code
        account.verified = True
        account.pending_verification_code = None
        account.touch()
        if not await self._accounts.update(
            account,
            ("verified", "pending_verification_code"),
            expect={
                "verified": False,
                "pending_verification_code.code_hash": consumed.code_hash,
            },
        ):
            # Verified or re-issued in the meantime
            self._check_verification_code(await self._get_by_id(account_id), code)
            raise InvalidCodeError("Invalid verification code")

        log.info("email_verified", account_id=account.account_id)
        return account

    def _check_verification_code(self, account: AccountDoc, code: str) -> None:
        if account.verified:
            # Verification is terminal; the consumed code is gone.
            raise BadRequestError("User already verified")
        try:
            self._check_code(account.pending_verification_code, code, "verification")
        except (BadRequestError, CodeExpiredError, InvalidCodeError) as exc:
            log.warning(
                "email_verification_failed",
                account_id=account.account_id,
                reason=exc.error_code,
            )
            raise

    # ── Password change ──────────────────────────────────────────────────────

    async def change_password(
        self, account_id: str, old_password: str, new_password: str
    ) -> None:
        account = await self._get_by_id(account_id)
        old_hash = account.password_hash
        if not await self._verify_password(old_password, old_hash):
            log.warning("password_change_failed", account_id=account.account_id)
            raise BadRequestError("Old password is incorrect", field="oldPassword")

        account.password_hash = await self._hash_password(new_password)
        account.touch()
        if not await self._accounts.update(
            account, ("password_hash",), expect={"password_hash": old_hash}
        ):
            # The password was replaced while this request was hashing
            log.warning(
                "password_change_failed",
                account_id=account.account_id,
                reason="password_replaced",
            )
            raise BadRequestError("Old password is incorrect", field="oldPassword")
        log.info("password_changed", account_id=account.account_id)

    # ── Forgot password ──────────────────────────────────────────────────────

    async def send_forgot_password_code(self, email: str) -> int:
        """Issue a fresh reset code; returns its lifetime in seconds."""
        account = await self._get_by_email(email)

        code, pending = self._new_pending_code()
        account.pending_reset_code = pending
        account.touch()
        await self._accounts.update(account, ("pending_reset_code",))

        await self._notifier.send(account.email, CODE_PURPOSE_PASSWORD_RESET, code)
        log.info("password_reset_code_sent", account_id=account.account_id)
        return self._code_ttl

    async def verify_forgot_password_code(self, email: str, code: str) -> None:
        """Check a reset code without consuming it."""
        account = await self._get_by_email(email)
        self._check_reset_code(account, code)

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        # The code is checked again here; a prior verify call is not trusted.
        account = await self._get_by_email(email)
        self._check_reset_code(account, code)

        consumed = account.pending_reset_code
        account.password_hash = await self._hash_password(new_password)
        account.pending_reset_code = None
        account.touch()
        if not await self._accounts.update(
            account,
            ("password_hash", "pending_reset_code"),
            expect={"pending_reset_code.code_hash": consumed.code_hash},
        ):
            # Consumed or re-issued while this request was hashing
            self._check_reset_code(await self._get_by_email(email), code)
            raise InvalidCodeError("Invalid reset code")
        log.info("password_reset_success", account_id=account.account_id)

    def _check_reset_code(self, account: AccountDoc, code: str) -> None:
        try:
            self._check_code(account.pending_reset_code, code, "reset")
        except (BadRequestError, CodeExpiredError, InvalidCodeError) as exc:
            log.warning(
                "password_reset_verification_failed",
                account_id=account.account_id,
                reason=exc.error_code,
            )
            raise
