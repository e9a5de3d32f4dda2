"""Unit tests for shared/ — crypto, tokens, generators, validators, logging."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from errors import AuthenticationError, ConfigurationError, HashingError
from shared.crypto import CodeHasher, SecretHasher
from shared.generators import OTP_MAX, OTP_MIN, generate_otp_code
from shared.logging import redact_sensitive_fields
from shared.tokens import TokenIssuer, strip_bearer
from shared.validators import (
    normalize_email,
    validate_code,
    validate_email,
    validate_password,
)


# ── SecretHasher ──────────────────────────────────────────────────────────────


class TestSecretHasher:
    def test_verify_round_trip(self, secret_hasher):
        h = secret_hasher.hash("Passw0rd!")
        assert secret_hasher.verify("Passw0rd!", h) is True

    def test_different_password_fails(self, secret_hasher):
        h = secret_hasher.hash("Passw0rd!")
        assert secret_hasher.verify("Passw0rd?", h) is False

    def test_salted(self, secret_hasher):
        assert secret_hasher.hash("Passw0rd!") != secret_hasher.hash("Passw0rd!")

    def test_hash_describes_parameters(self, secret_hasher):
        h = secret_hasher.hash("Passw0rd!")
        assert h.startswith("$argon2id$")
        assert "t=1" in h

    def test_malformed_hash_raises(self, secret_hasher):
        with pytest.raises(HashingError):
            secret_hasher.verify("Passw0rd!", "not-a-hash")

    def test_verifies_hash_made_with_other_cost(self, secret_hasher):
        stronger = SecretHasher(time_cost=2, memory_cost=8, parallelism=1)
        assert secret_hasher.verify("Passw0rd!", stronger.hash("Passw0rd!")) is True


# ── CodeHasher ────────────────────────────────────────────────────────────────


class TestCodeHasher:
    def test_deterministic(self, code_hasher):
        assert code_hasher.hmac("123456") == code_hasher.hmac("123456")

    def test_hex_sha256_length(self, code_hasher):
        digest = code_hasher.hmac("123456")
        assert len(digest) == 64
        int(digest, 16)

    def test_known_vector(self):
        # RFC 4231 test case 2
        hasher = CodeHasher("Jefe")
        assert hasher.hmac("what do ya want for nothing?") == (
            "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
        )

    @pytest.mark.parametrize(
        "code, key",
        [("123457", None), ("123456", "other-key")],
        ids=["code_differs", "key_differs"],
    )
    def test_any_difference_changes_digest(self, code_hasher, code, key):
        assert code_hasher.hmac(code, key) != code_hasher.hmac("123456")

    def test_matches(self, code_hasher):
        digest = code_hasher.hmac("654321")
        assert code_hasher.matches("654321", digest) is True
        assert code_hasher.matches("654322", digest) is False

    def test_empty_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            CodeHasher("")


# ── TokenIssuer ───────────────────────────────────────────────────────────────


class TestTokenIssuer:
    def test_issue_and_verify(self, token_issuer):
        claims = token_issuer.verify(token_issuer.issue("abc", True))
        assert claims.account_id == "abc"
        assert claims.verified is True

    def test_lifetime_is_24_hours(self, token_issuer):
        claims = token_issuer.verify(token_issuer.issue("abc", False))
        assert claims.expires_at - claims.issued_at == timedelta(hours=24)

    def test_expired_token_unauthorized(self):
        issuer = TokenIssuer("secret", ttl_seconds=-10)
        with pytest.raises(AuthenticationError) as exc_info:
            issuer.verify(issuer.issue("abc", False))
        assert exc_info.value.message == "Unauthorized"

    @pytest.mark.parametrize(
        "token",
        [
            None,
            "",
            "garbage",
            jwt.encode({"sub": "abc", "verified": True}, "other", algorithm="HS256"),
        ],
        ids=["none", "empty", "malformed", "wrong_key"],
    )
    def test_failures_are_uniform(self, token_issuer, token):
        with pytest.raises(AuthenticationError) as exc_info:
            token_issuer.verify(token)
        assert exc_info.value.message == "Unauthorized"

    def test_wrong_signature_same_message_as_expired(self, token_issuer):
        forged = jwt.encode(
            {
                "sub": "abc",
                "verified": True,
                "iat": int(datetime.now(timezone.utc).timestamp()),
                "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp()),
            },
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError) as forged_exc:
            token_issuer.verify(forged)
        expired = TokenIssuer("test-token-secret", ttl_seconds=-10).issue("abc", True)
        with pytest.raises(AuthenticationError) as expired_exc:
            token_issuer.verify(expired)
        assert forged_exc.value.to_dict() == expired_exc.value.to_dict()

    def test_missing_secret_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            TokenIssuer("")

    def test_from_settings(self, auth_settings):
        issuer = TokenIssuer.from_settings(auth_settings)
        assert issuer.ttl_seconds == auth_settings.token_ttl_seconds


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("abc.def.ghi", "abc.def.ghi"),
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer  abc.def.ghi ", "abc.def.ghi"),
        ("", None),
        (None, None),
    ],
    ids=["raw", "bearer", "lowercase_bearer", "empty", "none"],
)
def test_strip_bearer(raw, expected):
    assert strip_bearer(raw) == expected


# ── Generators ────────────────────────────────────────────────────────────────


def test_otp_code_shape():
    for _ in range(200):
        code = generate_otp_code()
        assert len(code) == 6
        assert code.isdigit()
        assert OTP_MIN <= int(code) <= OTP_MAX


# ── Validators ────────────────────────────────────────────────────────────────


class TestValidators:
    @pytest.mark.parametrize(
        "password, expected",
        [
            ("Passw0rd!", True),
            ("Passw0rd", True),
            ("passw0rd", False),
            ("PASSW0RD", False),
            ("Password", False),
            ("Pa0!", False),
            ("Passw0rd#", False),
            ("Passw0rd\n", False),
        ],
    )
    def test_validate_password(self, password, expected):
        assert validate_password(password) is expected

    @pytest.mark.parametrize(
        "code, expected",
        [("123456", True), ("12345", False), ("1234567", False), ("12a456", False), ("123456\n", False)],
    )
    def test_validate_code(self, code, expected):
        assert validate_code(code) is expected

    def test_valid_email(self):
        assert validate_email("a@example.com") is None

    @pytest.mark.parametrize(
        "email",
        ["a@b.c", "not-an-email", "user@example.io", "x" * 60 + "@example.com"],
        ids=["too_short", "no_at", "tld_not_allowed", "too_long"],
    )
    def test_invalid_email(self, email):
        assert validate_email(email) is not None

    def test_normalize_email(self):
        assert normalize_email("  A@Example.COM ") == "a@example.com"


# ── Logging ───────────────────────────────────────────────────────────────────


def test_redacts_credentials():
    event = redact_sensitive_fields(
        None,
        "info",
        {
            "event": "x",
            "password": "Passw0rd!",
            "access_token": "t",
            "code_hash": "h",
            "account_id": "1",
        },
    )
    assert event["password"] == "***REDACTED***"
    assert event["access_token"] == "***REDACTED***"
    assert event["code_hash"] == "***REDACTED***"
    assert event["account_id"] == "1"
    assert event["event"] == "x"
