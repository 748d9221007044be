from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Tuple
from uuid import uuid4

from ..core.errors import (
    InvalidOwnerSet,
    OwnerLimitExceeded,
    Unauthorized,
    UnknownAccount,
)
from ..core.identity import Principal


logger = logging.getLogger(__name__)


@dataclass
class Account:
    id: int
    owners: Tuple[Principal, ...]
    balance: int = 0

    def has_owner(self, principal: Principal) -> bool:
        return principal in self.owners


class AccountRegistry:
    """Holds every account and the lock that serializes ledger transitions.

    Owners are fixed at creation: the creator first, then the co-owners in
    the order they were supplied.

    ``ledger_id`` tags everything this registry writes to the journal, since
    account ids restart at 0 with every new registry.
    """

    def __init__(self, max_owners: int = 4, max_accounts_per_owner: int = 3) -> None:
        self.max_owners = max_owners
        self.max_accounts_per_owner = max_accounts_per_owner
        self.ledger_id = uuid4().hex
        self._accounts: List[Account] = []
        self._owned: Dict[Principal, List[int]] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _validate_owner_set(self, creator: Principal, co_owners: Sequence[Principal]) -> Tuple[Principal, ...]:
        owners = (creator, *co_owners)
        if len(owners) > self.max_owners:
            raise InvalidOwnerSet(
                f"An account can have at most {self.max_owners} owners, got {len(owners)}"
            )
        if len(set(owners)) != len(owners):
            raise InvalidOwnerSet("Account owners must be distinct")
        return owners

    def _check_owner_limits(self, owners: Tuple[Principal, ...]) -> None:
        for owner in owners:
            if len(self._owned.get(owner, [])) >= self.max_accounts_per_owner:
                raise OwnerLimitExceeded(
                    f"{owner} already owns {self.max_accounts_per_owner} accounts"
                )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create_account(self, creator: Principal, co_owners: Sequence[Principal] = ()) -> int:
        with self.transaction():
            owners = self._validate_owner_set(creator, co_owners)
            self._check_owner_limits(owners)

            account = Account(id=len(self._accounts), owners=owners)
            self._accounts.append(account)
            for owner in owners:
                self._owned.setdefault(owner, []).append(account.id)

        logger.info(
            "account.created",
            extra={"account_id": account.id, "owners": list(owners)},
        )
        return account.id

    def get_accounts(self, caller: Principal) -> list[int]:
        with self.transaction():
            return list(self._owned.get(caller, []))

    def get_account(self, account_id: int) -> Account:
        if not 0 <= account_id < len(self._accounts):
            raise UnknownAccount(f"Account {account_id} not found")
        return self._accounts[account_id]

    def is_owner(self, account_id: int, principal: Principal) -> bool:
        return self.get_account(account_id).has_owner(principal)

    def require_owner(self, account_id: int, principal: Principal) -> Account:
        account = self.get_account(account_id)
        if not account.has_owner(principal):
            raise Unauthorized(f"{principal} is not an owner of account {account_id}")
        return account

    def get_owners(self, account_id: int) -> Tuple[Principal, ...]:
        return self.get_account(account_id).owners

    def get_balance(self, caller: Principal, account_id: int) -> int:
        with self.transaction():
            return self.require_owner(account_id, caller).balance
