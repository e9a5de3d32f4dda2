"""
Cryptographic helpers — password hashing and one-time code hashing.

SecretHasher uses argon2id (via argon2-cffi) for long-term password storage.
CodeHasher uses HMAC-SHA256 for short-lived numeric codes: codes are compared
by digest equality, so the hash must be deterministic for a given key.

Both take their parameters explicitly; nothing here reads the environment.
"""

from __future__ import annotations

import hashlib
import hmac as _hmac
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from errors import ConfigurationError, HashingError


class SecretHasher:
    """Salted, slow, one-way hashing for passwords."""

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        """Hash *plaintext* with argon2id.

        Returns:
            Encoded argon2 hash (includes algorithm, parameters and salt).
        """
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """Verify *plaintext* against an argon2 *password_hash*.

        Returns:
            ``True`` on match, ``False`` on mismatch.

        Raises:
            HashingError: the stored hash is malformed.
        """
        try:
            return self._hasher.verify(password_hash, plaintext)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            raise HashingError("stored password hash is malformed") from exc


class CodeHasher:
    """Deterministic keyed hashing for one-time numeric codes."""

    def __init__(self, key: str) -> None:
        if not key:
            raise ConfigurationError("HMAC key for one-time codes is not configured")
        self._key = key

    def hmac(self, code: str, key: Optional[str] = None) -> str:
        """Return the hex HMAC-SHA256 of *code* under *key* (default: own key).

        Args:
            code: The plaintext code.
            key: Override key; the configured key is used when omitted.

        Returns:
            64-character lowercase hex string.
        """
        secret = self._key if key is None else key
        return _hmac.new(
            secret.encode("utf-8"), code.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def matches(self, code: str, code_hash: str) -> bool:
        return _hmac.compare_digest(self.hmac(code), code_hash)
