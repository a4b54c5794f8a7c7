"""Account records (`user_<id>`)."""

from __future__ import annotations

import hmac
from collections.abc import Mapping
from typing import Any

import structlog

from carestore.domain.keys import EntityKind
from carestore.domain.models import Account, AccountCreate, Role
from carestore.services.identifiers import IdFactory, new_id
from carestore.services.repository import Repository
from carestore.services.store import KeyValueStore

logger = structlog.get_logger(__name__)


class AccountService:
    """Identity records of every role."""

    def __init__(self, store: KeyValueStore, id_factory: IdFactory = new_id) -> None:
        self.accounts = Repository(store, EntityKind.ACCOUNT, Account)
        self.id_factory = id_factory
        self.logger = logger.bind(component="account_service")

    async def list(self) -> list[Account]:
        return await self.accounts.list()

    async def list_by_role(self, role: Role) -> list[Account]:
        return [a for a in await self.accounts.list() if a.role == role]

    async def get(self, account_id: str) -> Account | None:
        return await self.accounts.get(account_id)

    async def create(self, data: AccountCreate | Mapping[str, Any]) -> Account:
        """Write a standalone account. Patient and doctor accounts go through their services."""
        payload = data if isinstance(data, AccountCreate) else AccountCreate.model_validate(data)
        account = await self.accounts.save(
            Account(id=self.id_factory(), **payload.model_dump())
        )
        self.logger.info("account_created", account_id=account.id, role=account.role.value)
        return account

    async def find_by_email(self, email: str) -> Account | None:
        wanted = email.strip().lower()
        for account in await self.accounts.list():
            if account.email.strip().lower() == wanted:
                return account
        return None

    async def authenticate(self, email: str, password: str) -> Account | None:
        """Return the account whose email and password match, else None.

        An empty password never matches, including against an account stored
        without one.
        """
        account = await self.find_by_email(email) if password else None
        if (
            account is None
            or not account.password
            or not hmac.compare_digest(account.password.encode(), password.encode())
        ):
            self.logger.info("authentication_failed", email=email)
            return None
        self.logger.info("authentication_succeeded", account_id=account.id)
        return account
