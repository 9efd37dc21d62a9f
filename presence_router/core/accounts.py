"""In-memory account store; the only way identities enter the registry."""

import logging
from typing import Dict, Optional

from starlette.concurrency import run_in_threadpool

from presence_router.models import account as account_model
from presence_router.models.account import Account
from presence_router.core.registry import IdentityRegistry
from presence_router.core.exceptions import (
    AccountExistsError, AuthenticationError, InvalidCredentialsError
)

logger = logging.getLogger(__name__)


class AccountStore:
    """
    Registers and verifies username/password pairs.

    Password hashing runs in the threadpool; the account map and the
    registry are only touched on the event loop.
    """

    def __init__(self, registry: IdentityRegistry):
        self.registry = registry
        self.accounts: Dict[str, Account] = {}

    @staticmethod
    def _require(username: Optional[str], password: Optional[str]) -> None:
        if not username or not password:
            raise InvalidCredentialsError("username and password are required")

    async def register(self, username: Optional[str], password: Optional[str]) -> Account:
        """
        Create an account and add its identity to the registry.

        Raises:
            InvalidCredentialsError: If either field is missing
            AccountExistsError: If the username is taken
        """
        self._require(username, password)
        if username in self.accounts:
            raise AccountExistsError("username already exists")

        salt = account_model.new_salt()
        password_hash = await run_in_threadpool(account_model.hash_password, password, salt)

        # Another register for the same name may have finished while hashing.
        if username in self.accounts:
            raise AccountExistsError("username already exists")

        account = Account(username=username, password_hash=password_hash, salt=salt)
        self.accounts[username] = account
        self.registry.add(username)
        logger.info(f"Registered: {username}")
        return account

    async def verify(self, username: Optional[str], password: Optional[str]) -> Account:
        """
        Check a login attempt.

        Raises:
            InvalidCredentialsError: If either field is missing
            AuthenticationError: If the account is unknown or the password is wrong
        """
        self._require(username, password)
        account = self.accounts.get(username)
        if account is None:
            raise AuthenticationError("invalid credentials")

        candidate = await run_in_threadpool(account_model.hash_password, password, account.salt)
        if not account.matches(candidate):
            raise AuthenticationError("invalid credentials")
        return account
