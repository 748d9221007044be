from fastapi import APIRouter, Depends, Query, status

from ..core.dependencies import (
    get_journal_repository,
    get_principal,
    get_registry,
    get_withdrawal_ledger,
)
from ..core.identity import Principal
from ..models import (
    AccountCreate,
    AccountListResponse,
    AccountResponse,
    ApprovalsResponse,
    JournalEntryResponse,
    MoneyMovementRequest,
    StatementResponse,
    WithdrawalRequestResponse,
)
from ..services import (
    Account,
    AccountRegistry,
    JournalRepository,
    WithdrawalLedger,
    WithdrawalRequest,
)


router = APIRouter(prefix="/accounts", tags=["accounts"])

def _account_to_response(account: Account) -> AccountResponse:
    return AccountResponse(id=account.id, owners=list(account.owners), balance=account.balance)

def _request_to_response(request: WithdrawalRequest) -> WithdrawalRequestResponse:
    return WithdrawalRequestResponse(
        id=request.id,
        account_id=request.account_id,
        amount=request.amount,
        requester=request.requester,
        approvals=sorted(request.approvals),
        executed=request.executed,
    )

def _owned_account(registry: AccountRegistry, account_id: int, caller: Principal) -> AccountResponse:
    with registry.transaction():
        return _account_to_response(registry.require_owner(account_id, caller))

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    caller: Principal = Depends(get_principal),
    registry: AccountRegistry = Depends(get_registry),
) -> AccountResponse:
    account_id = registry.create_account(caller, payload.co_owners)
    return _owned_account(registry, account_id, caller)

@router.get("", response_model=AccountListResponse)
def list_accounts(
    caller: Principal = Depends(get_principal),
    registry: AccountRegistry = Depends(get_registry),
) -> AccountListResponse:
    return AccountListResponse(account_ids=registry.get_accounts(caller))

@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    caller: Principal = Depends(get_principal),
    registry: AccountRegistry = Depends(get_registry),
) -> AccountResponse:
    return _owned_account(registry, account_id, caller)

@router.post("/{account_id}/deposit", response_model=AccountResponse)
def deposit(
    account_id: int,
    payload: MoneyMovementRequest,
    caller: Principal = Depends(get_principal),
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> AccountResponse:
    ledger.deposit(caller, account_id, payload.amount)
    return _owned_account(ledger.registry, account_id, caller)

@router.post(
    "/{account_id}/withdrawals",
    response_model=WithdrawalRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def request_withdrawal(
    account_id: int,
    payload: MoneyMovementRequest,
    caller: Principal = Depends(get_principal),
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> WithdrawalRequestResponse:
    request_id = ledger.request_withdrawal(caller, account_id, payload.amount)
    return _request_to_response(ledger.get_request(account_id, request_id))

@router.get("/{account_id}/withdrawals", response_model=list[WithdrawalRequestResponse])
def list_withdrawals(
    account_id: int,
    caller: Principal = Depends(get_principal),
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> list[WithdrawalRequestResponse]:
    return [_request_to_response(request) for request in ledger.list_requests(caller, account_id)]

@router.get("/{account_id}/withdrawals/{request_id}", response_model=WithdrawalRequestResponse)
def get_withdrawal(
    account_id: int,
    request_id: int,
    caller: Principal = Depends(get_principal),
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> WithdrawalRequestResponse:
    _owned_account(ledger.registry, account_id, caller)
    return _request_to_response(ledger.get_request(account_id, request_id))

@router.post(
    "/{account_id}/withdrawals/{request_id}/approve",
    response_model=WithdrawalRequestResponse,
)
def approve_withdrawal(
    account_id: int,
    request_id: int,
    caller: Principal = Depends(get_principal),
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> WithdrawalRequestResponse:
    ledger.approve_withdrawal(caller, account_id, request_id)
    return _request_to_response(ledger.get_request(account_id, request_id))

@router.get("/{account_id}/withdrawals/{request_id}/approvals", response_model=ApprovalsResponse)
def get_approvals(
    account_id: int,
    request_id: int,
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> ApprovalsResponse:
    return ApprovalsResponse(count=ledger.get_approvals(account_id, request_id))

@router.post("/{account_id}/withdrawals/{request_id}/withdraw", response_model=AccountResponse)
def withdraw(
    account_id: int,
    request_id: int,
    caller: Principal = Depends(get_principal),
    ledger: WithdrawalLedger = Depends(get_withdrawal_ledger),
) -> AccountResponse:
    ledger.withdraw(caller, account_id, request_id)
    return _owned_account(ledger.registry, account_id, caller)

@router.get("/{account_id}/statement", response_model=StatementResponse)
def get_statement(
    account_id: int,
    limit: int = Query(50, ge=1, le=500),
    cursor: str | None = None,
    caller: Principal = Depends(get_principal),
    registry: AccountRegistry = Depends(get_registry),
    repository: JournalRepository = Depends(get_journal_repository),
) -> StatementResponse:
    _owned_account(registry, account_id, caller)

    before_id = None
    if cursor:
        try:
            before_id = int(cursor)
        except ValueError as exc:
            raise ValueError("Invalid cursor") from exc

    # One extra row tells us whether another page exists.
    entries = repository.list_entries(
        registry.ledger_id, account_id, limit=limit + 1, before_id=before_id
    )
    page = entries[:limit]
    next_cursor = str(page[-1].id) if len(entries) > limit else None

    items = [
        JournalEntryResponse(
            id=entry.id,
            ts=entry.ts,
            account_id=entry.account_id,
            principal=entry.principal,
            amount=entry.amount,
            type=entry.type,
            request_id=entry.request_id,
        )
        for entry in page
    ]
    return StatementResponse(items=items, next_cursor=next_cursor)

__all__ = ["router"]
