"""
Account repository — the only module that talks to the `users` collection.

Mutations never write a whole document back. update() $sets / $unsets only
the fields a workflow step changed, optionally guarded by conditions on the
stored state, so overlapping requests for the same account cannot undo each
other's writes.
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError
from schemas.models.account import AccountDoc
from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"


class AccountRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email.strip().lower()})
        return AccountDoc.from_mongo(doc)

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        if not ObjectId.is_valid(account_id):
            return None
        doc = await self._col.find_one({"_id": ObjectId(account_id)})
        return AccountDoc.from_mongo(doc)

    async def create(self, account: AccountDoc) -> AccountDoc:
        """Insert *account* and return it with its generated id.

        Raises:
            ConflictError: another account already owns the email.
        """
        try:
            result = await self._col.insert_one(account.to_mongo())
        except DuplicateKeyError:
            # Email registered between the existence check and the insert
            log.warning("account_create_failed", reason="duplicate_email")
            raise ConflictError("User already exists!", field="email") from None
        account.id = result.inserted_id
        return account

    async def update(
        self,
        account: AccountDoc,
        fields: tuple[str, ...],
        expect: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Write only *fields* of *account* (plus updated_at).

        Fields whose value is None are $unset. *expect* adds conditions on
        the stored document, e.g. ``{"verified": False}``; when it no longer
        holds nothing is written and False is returned.

        Raises:
            NotFoundError: the account is gone and no *expect* was given.
        """
        if account.id is None:
            raise ValueError("cannot update an account that was never created")
        doc = account.to_mongo()
        to_set: dict[str, Any] = {}
        to_unset: dict[str, str] = {}
        for name in (*fields, "updated_at"):
            if doc.get(name) is None:
                to_unset[name] = ""
            else:
                to_set[name] = doc[name]

        changes: dict[str, dict] = {}
        if to_set:
            changes["$set"] = to_set
        if to_unset:
            changes["$unset"] = to_unset

        query: dict[str, Any] = {"_id": account.id}
        if expect:
            query.update(expect)
        result = await self._col.update_one(query, changes)
        if result.matched_count == 0:
            if expect is None:
                raise NotFoundError("User not found")
            log.info(
                "account_update_skipped",
                account_id=account.account_id,
                fields=list(fields),
                reason="stale_state",
            )
            return False
        return True
