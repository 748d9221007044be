from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Set

from ..core.errors import (
    AlreadyApproved,
    AlreadyExecuted,
    InsufficientBalance,
    InvalidAmount,
    NotApproved,
    PayoutFailed,
    Unauthorized,
    UnknownRequest,
)
from ..core.identity import Principal
from .registry import Account, AccountRegistry
from .sink import ValueSink


logger = logging.getLogger(__name__)


@dataclass
class WithdrawalRequest:
    id: int
    account_id: int
    amount: int
    requester: Principal
    approvals: Set[Principal] = field(default_factory=set)
    executed: bool = False


class WithdrawalLedger:
    """Balance bookkeeping and the request/approve/withdraw protocol.

    A request may be paid out once every owner other than the requester has
    approved it. Requested amounts are not reserved, so open requests can add
    up to more than the balance; the balance is checked again on withdraw.
    """

    def __init__(self, registry: AccountRegistry, sink: ValueSink) -> None:
        self.registry = registry
        self.sink = sink
        self._requests: Dict[int, List[WithdrawalRequest]] = {}

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _get_request(self, account: Account, request_id: int) -> WithdrawalRequest:
        requests = self._requests.get(account.id, [])
        if not 0 <= request_id < len(requests):
            raise UnknownRequest(f"Withdrawal request {request_id} not found on account {account.id}")
        return requests[request_id]

    def _quorum(self, account: Account) -> int:
        return len(account.owners) - 1

    def _snapshot(self, request: WithdrawalRequest) -> WithdrawalRequest:
        return replace(request, approvals=set(request.approvals))

    def _check_amount(self, amount: int, kind: str) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmount(f"{kind} amount must be an integer, got {amount!r}")
        if amount <= 0:
            raise InvalidAmount(f"{kind} amount must be positive")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def deposit(self, caller: Principal, account_id: int, amount: int) -> int:
        with self.registry.transaction():
            account = self.registry.require_owner(account_id, caller)
            self._check_amount(amount, "Deposit")

            self.sink.credit(account_id, amount, principal=caller)
            account.balance += amount
            balance = account.balance

        logger.info(
            "account.deposit",
            extra={"account_id": account_id, "amount": amount, "balance": balance},
        )
        return balance

    def request_withdrawal(self, caller: Principal, account_id: int, amount: int) -> int:
        with self.registry.transaction():
            account = self.registry.require_owner(account_id, caller)
            self._check_amount(amount, "Withdrawal")
            if amount > account.balance:
                raise InvalidAmount(
                    f"Withdrawal amount {amount} exceeds balance {account.balance}"
                )

            requests = self._requests.setdefault(account_id, [])
            request = WithdrawalRequest(
                id=len(requests),
                account_id=account_id,
                amount=amount,
                requester=caller,
            )
            requests.append(request)

        logger.info(
            "withdrawal.requested",
            extra={"account_id": account_id, "request_id": request.id, "amount": amount},
        )
        return request.id

    def approve_withdrawal(self, caller: Principal, account_id: int, request_id: int) -> None:
        with self.registry.transaction():
            account = self.registry.require_owner(account_id, caller)
            request = self._get_request(account, request_id)
            if request.executed:
                raise AlreadyExecuted(f"Withdrawal request {request_id} was already executed")
            if request.requester == caller:
                raise Unauthorized("The requester cannot approve their own withdrawal")
            if caller in request.approvals:
                raise AlreadyApproved(f"{caller} already approved request {request_id}")

            request.approvals.add(caller)
            approvals = len(request.approvals)

        logger.info(
            "withdrawal.approved",
            extra={
                "account_id": account_id,
                "request_id": request_id,
                "approvals": approvals,
            },
        )

    def withdraw(self, caller: Principal, account_id: int, request_id: int) -> int:
        with self.registry.transaction():
            account = self.registry.get_account(account_id)
            request = self._get_request(account, request_id)
            if request.requester != caller:
                raise Unauthorized("Only the requester can execute a withdrawal")
            if request.executed:
                raise AlreadyExecuted(f"Withdrawal request {request_id} was already executed")
            if len(request.approvals) < self._quorum(account):
                raise NotApproved(f"Withdrawal request {request_id} is not fully approved")
            if account.balance < request.amount:
                raise InsufficientBalance(
                    f"Balance {account.balance} does not cover withdrawal of {request.amount}"
                )

            request.executed = True
            account.balance -= request.amount
            try:
                paid = self.sink.pay_out(
                    caller,
                    request.amount,
                    account_id=account_id,
                    request_id=request_id,
                )
            except Exception as exc:
                request.executed = False
                account.balance += request.amount
                logger.exception(
                    "withdrawal.payout_failed",
                    extra={"account_id": account_id, "request_id": request_id},
                )
                raise PayoutFailed(f"Payout for request {request_id} failed") from exc
            if not paid:
                request.executed = False
                account.balance += request.amount
                logger.error(
                    "withdrawal.payout_failed",
                    extra={"account_id": account_id, "request_id": request_id},
                )
                raise PayoutFailed(f"Payout for request {request_id} failed")
            balance = account.balance

        logger.info(
            "withdrawal.executed",
            extra={
                "account_id": account_id,
                "request_id": request_id,
                "amount": request.amount,
                "balance": balance,
            },
        )
        return balance

    def get_approvals(self, account_id: int, request_id: int) -> int:
        with self.registry.transaction():
            account = self.registry.get_account(account_id)
            return len(self._get_request(account, request_id).approvals)

    def is_approved(self, account_id: int, request_id: int) -> bool:
        with self.registry.transaction():
            account = self.registry.get_account(account_id)
            request = self._get_request(account, request_id)
            return len(request.approvals) >= self._quorum(account)

    def get_request(self, account_id: int, request_id: int) -> WithdrawalRequest:
        with self.registry.transaction():
            account = self.registry.get_account(account_id)
            return self._snapshot(self._get_request(account, request_id))

    def list_requests(self, caller: Principal, account_id: int) -> list[WithdrawalRequest]:
        with self.registry.transaction():
            self.registry.require_owner(account_id, caller)
            return [self._snapshot(request) for request in self._requests.get(account_id, [])]
