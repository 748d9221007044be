import pytest

from ..core.errors import (
    AlreadyApproved,
    AlreadyExecuted,
    InsufficientBalance,
    InvalidAmount,
    NotApproved,
    PayoutFailed,
    Unauthorized,
    UnknownAccount,
    UnknownRequest,
)
from ..services import AccountRegistry, WithdrawalLedger


class RecordingSink:
    def __init__(self) -> None:
        self.credits: list[tuple[int, int, str]] = []
        self.payouts: list[tuple[str, int, int, int]] = []
        self.payout_result = True
        self.payout_error: Exception | None = None
        self.credit_error: Exception | None = None

    def credit(self, account_id: int, amount: int, *, principal: str) -> None:
        if self.credit_error is not None:
            raise self.credit_error
        self.credits.append((account_id, amount, principal))

    def pay_out(self, principal: str, amount: int, *, account_id: int, request_id: int) -> bool:
        if self.payout_error is not None:
            raise self.payout_error
        if self.payout_result:
            self.payouts.append((principal, amount, account_id, request_id))
        return self.payout_result


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def registry() -> AccountRegistry:
    return AccountRegistry()


@pytest.fixture
def ledger(registry: AccountRegistry, sink: RecordingSink) -> WithdrawalLedger:
    return WithdrawalLedger(registry, sink)


def make_account(ledger: WithdrawalLedger, owners=1, deposit=0, withdrawals=()) -> int:
    co_owners = ["bob", "carol", "dave"][: owners - 1]
    account_id = ledger.registry.create_account("alice", co_owners)
    if deposit > 0:
        ledger.deposit("alice", account_id, deposit)
    for amount in withdrawals:
        ledger.request_withdrawal("alice", account_id, amount)
    return account_id


def balance(ledger: WithdrawalLedger, account_id: int = 0) -> int:
    return ledger.registry.get_account(account_id).balance


# Deposits ---------------------------------------------------------------

def test_owner_deposit(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger)

    assert ledger.deposit("alice", 0, 100) == 100
    assert balance(ledger) == 100
    assert sink.credits == [(0, 100, "alice")]


def test_non_owner_deposit_rejected(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger)

    with pytest.raises(Unauthorized):
        ledger.deposit("bob", 0, 100)
    assert balance(ledger) == 0
    assert sink.credits == []


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_deposit_rejected(ledger: WithdrawalLedger, amount: int) -> None:
    make_account(ledger)

    with pytest.raises(InvalidAmount):
        ledger.deposit("alice", 0, amount)
    assert balance(ledger) == 0


@pytest.mark.parametrize("amount", [0.5, 100.0, True, "100"])
def test_non_integer_deposit_rejected(ledger: WithdrawalLedger, sink: RecordingSink, amount) -> None:
    make_account(ledger)

    with pytest.raises(InvalidAmount):
        ledger.deposit("alice", 0, amount)
    assert balance(ledger) == 0
    assert sink.credits == []


def test_deposit_to_unknown_account(ledger: WithdrawalLedger) -> None:
    with pytest.raises(UnknownAccount):
        ledger.deposit("alice", 3, 100)


def test_failed_credit_leaves_balance(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger)
    sink.credit_error = RuntimeError("sink offline")

    with pytest.raises(RuntimeError):
        ledger.deposit("alice", 0, 100)
    assert balance(ledger) == 0


# Requests ---------------------------------------------------------------

def test_owner_requests_withdrawal(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100)

    request_id = ledger.request_withdrawal("alice", 0, 100)

    request = ledger.get_request(0, request_id)
    assert request_id == 0
    assert request.requester == "alice"
    assert request.approvals == set()
    assert not request.executed


def test_request_above_balance_rejected(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100)

    with pytest.raises(InvalidAmount):
        ledger.request_withdrawal("alice", 0, 101)
    with pytest.raises(InvalidAmount):
        ledger.request_withdrawal("alice", 0, 0)
    assert ledger.list_requests("alice", 0) == []


@pytest.mark.parametrize("amount", [0.5, 50.0, True])
def test_non_integer_request_rejected(ledger: WithdrawalLedger, amount) -> None:
    make_account(ledger, deposit=100)

    with pytest.raises(InvalidAmount):
        ledger.request_withdrawal("alice", 0, amount)
    assert ledger.list_requests("alice", 0) == []


def test_non_owner_request_rejected(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100)

    with pytest.raises(Unauthorized):
        ledger.request_withdrawal("bob", 0, 90)


def test_request_ids_are_per_account(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100, withdrawals=[20, 80])
    ledger.registry.create_account("bob", [])
    ledger.deposit("bob", 1, 50)

    assert ledger.request_withdrawal("bob", 1, 50) == 0
    assert [request.id for request in ledger.list_requests("alice", 0)] == [0, 1]


def test_open_requests_may_exceed_balance(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[60, 60])
    ledger.approve_withdrawal("bob", 0, 0)
    ledger.approve_withdrawal("bob", 0, 1)

    assert ledger.withdraw("alice", 0, 0) == 40
    with pytest.raises(InsufficientBalance):
        ledger.withdraw("alice", 0, 1)
    assert balance(ledger) == 40
    assert not ledger.get_request(0, 1).executed


# Approvals --------------------------------------------------------------

def test_co_owner_approves(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])

    ledger.approve_withdrawal("bob", 0, 0)

    assert ledger.get_approvals(0, 0) == 1
    assert ledger.is_approved(0, 0)


def test_non_owner_cannot_approve(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])

    with pytest.raises(Unauthorized):
        ledger.approve_withdrawal("carol", 0, 0)
    assert ledger.get_approvals(0, 0) == 0


def test_requester_cannot_approve(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])

    with pytest.raises(Unauthorized):
        ledger.approve_withdrawal("alice", 0, 0)
    assert "alice" not in ledger.get_request(0, 0).approvals


def test_double_approval_rejected(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])
    ledger.approve_withdrawal("bob", 0, 0)

    with pytest.raises(AlreadyApproved):
        ledger.approve_withdrawal("bob", 0, 0)
    assert ledger.get_approvals(0, 0) == 1


def test_approve_unknown_request(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100)

    with pytest.raises(UnknownRequest):
        ledger.approve_withdrawal("bob", 0, 0)
    with pytest.raises(UnknownRequest):
        ledger.get_approvals(0, 0)


def test_snapshots_do_not_leak_state(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])

    ledger.get_request(0, 0).approvals.add("mallory")

    assert ledger.get_approvals(0, 0) == 0


# Withdrawals ------------------------------------------------------------

def test_requester_withdraws_approved_request(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])
    ledger.approve_withdrawal("bob", 0, 0)

    assert ledger.withdraw("alice", 0, 0) == 0
    assert sink.payouts == [("alice", 100, 0, 0)]
    assert ledger.get_request(0, 0).executed


def test_executed_request_is_terminal(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=3, deposit=200, withdrawals=[100])
    ledger.approve_withdrawal("bob", 0, 0)
    ledger.approve_withdrawal("carol", 0, 0)
    ledger.withdraw("alice", 0, 0)

    with pytest.raises(AlreadyExecuted):
        ledger.withdraw("alice", 0, 0)
    with pytest.raises(AlreadyExecuted):
        ledger.approve_withdrawal("bob", 0, 0)
    assert balance(ledger) == 100


def test_only_requester_can_withdraw(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])
    ledger.approve_withdrawal("bob", 0, 0)

    with pytest.raises(Unauthorized):
        ledger.withdraw("bob", 0, 0)
    assert balance(ledger) == 100


def test_unapproved_withdrawal_rejected(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])

    with pytest.raises(NotApproved):
        ledger.withdraw("alice", 0, 0)
    assert balance(ledger) == 100
    assert sink.payouts == []


def test_every_co_owner_must_approve(ledger: WithdrawalLedger) -> None:
    make_account(ledger, owners=4, deposit=100, withdrawals=[50])
    ledger.approve_withdrawal("bob", 0, 0)
    ledger.approve_withdrawal("carol", 0, 0)

    with pytest.raises(NotApproved):
        ledger.withdraw("alice", 0, 0)

    ledger.approve_withdrawal("dave", 0, 0)
    assert ledger.withdraw("alice", 0, 0) == 50


def test_single_owner_needs_no_approval(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100, withdrawals=[30])

    assert ledger.is_approved(0, 0)
    assert ledger.withdraw("alice", 0, 0) == 70


def test_withdraw_unknown_request(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100)

    with pytest.raises(UnknownRequest):
        ledger.withdraw("alice", 0, 4)


def test_rejected_payout_rolls_back(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])
    ledger.approve_withdrawal("bob", 0, 0)
    sink.payout_result = False

    with pytest.raises(PayoutFailed):
        ledger.withdraw("alice", 0, 0)
    assert balance(ledger) == 100
    assert not ledger.get_request(0, 0).executed

    sink.payout_result = True
    assert ledger.withdraw("alice", 0, 0) == 0


def test_raising_payout_rolls_back(ledger: WithdrawalLedger, sink: RecordingSink) -> None:
    make_account(ledger, owners=2, deposit=100, withdrawals=[100])
    ledger.approve_withdrawal("bob", 0, 0)
    sink.payout_error = ConnectionError("transfer rail down")

    with pytest.raises(PayoutFailed) as excinfo:
        ledger.withdraw("alice", 0, 0)
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert balance(ledger) == 100
    assert not ledger.get_request(0, 0).executed


def test_list_requests_requires_ownership(ledger: WithdrawalLedger) -> None:
    make_account(ledger, deposit=100, withdrawals=[10])

    with pytest.raises(Unauthorized):
        ledger.list_requests("mallory", 0)
