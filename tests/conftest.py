"""
Shared test fixtures.

MongoDB is replaced by InMemoryAccountRepository, which honours the same
contract as AccountRepository (unique email, field-level conditional
update) and stores deep copies so unsaved mutations never leak into the
store.

Password hashing uses a minimal argon2 work factor to keep tests fast.
"""

from typing import Any, Optional

import pytest
from bson import ObjectId

from config import AppSettings, AuthSettings, DatabaseSettings
from errors import ConflictError, NotFoundError
from schemas.models.account import AccountDoc
from services.credential_service import CredentialService
from shared.crypto import CodeHasher, SecretHasher
from shared.tokens import TokenIssuer

TOKEN_SECRET = "test-token-secret"
HMAC_SECRET = "test-hmac-secret"


def _lookup(doc: dict, path: str) -> Any:
    """Resolve a dotted MongoDB field path against a plain dict."""
    for part in path.split("."):
        if not isinstance(doc, dict):
            return None
        doc = doc.get(part)
    return doc


class InMemoryAccountRepository:
    def __init__(self) -> None:
        self.docs: dict[str, AccountDoc] = {}

    async def ensure_indexes(self) -> None:
        return None

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        email = email.strip().lower()
        for doc in self.docs.values():
            if doc.email == email:
                return doc.model_copy(deep=True)
        return None

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        doc = self.docs.get(str(account_id))
        return doc.model_copy(deep=True) if doc else None

    async def create(self, account: AccountDoc) -> AccountDoc:
        if any(d.email == account.email for d in self.docs.values()):
            raise ConflictError("User already exists!", field="email")
        account.id = ObjectId()
        self.docs[str(account.id)] = account.model_copy(deep=True)
        return account

    async def update(
        self,
        account: AccountDoc,
        fields: tuple[str, ...],
        expect: Optional[dict[str, Any]] = None,
    ) -> bool:
        key = str(account.id)
        stored = self.docs.get(key)
        if stored is None:
            if expect is None:
                raise NotFoundError("User not found")
            return False
        if expect:
            current = stored.to_mongo()
            if any(_lookup(current, path) != value for path, value in expect.items()):
                return False
        changes = {name: getattr(account, name) for name in (*fields, "updated_at")}
        self.docs[key] = stored.model_copy(update=changes, deep=True)
        return True

    def stored(self, email: str) -> AccountDoc:
        """Return the stored document for *email* (test helper)."""
        for doc in self.docs.values():
            if doc.email == email:
                return doc
        raise KeyError(email)


class CapturingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, email: str, purpose: str, code: str) -> None:
        self.sent.append((email, purpose, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][2]


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def auth_settings():
    return AuthSettings(
        token_secret=TOKEN_SECRET,
        hmac_verification_code_secret=HMAC_SECRET,
        cookie_secure=False,
        password_hash_time_cost=1,
        password_hash_memory_cost=8,
        password_hash_parallelism=1,
    )


@pytest.fixture
def app_settings(auth_settings):
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        auth=auth_settings,
    )


@pytest.fixture
def secret_hasher():
    return SecretHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def code_hasher():
    return CodeHasher(HMAC_SECRET)


@pytest.fixture
def token_issuer():
    return TokenIssuer(TOKEN_SECRET, ttl_seconds=86400)


@pytest.fixture
def accounts():
    return InMemoryAccountRepository()


@pytest.fixture
def notifier():
    return CapturingNotifier()


@pytest.fixture
def service(accounts, secret_hasher, code_hasher, token_issuer, notifier):
    return CredentialService(
        accounts=accounts,
        secret_hasher=secret_hasher,
        code_hasher=code_hasher,
        token_issuer=token_issuer,
        notifier=notifier,
        code_ttl_seconds=600,
    )
