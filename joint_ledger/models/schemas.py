from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints

PrincipalName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

class AccountCreate(BaseModel):
    co_owners: list[PrincipalName] = Field(
        default_factory=list,
        max_length=3,
        description="Principals sharing the account with the caller (at most 3)",
    )

class AccountResponse(BaseModel):
    id: int
    owners: list[str]
    balance: int = Field(..., ge=0, description="Balance in minor units (e.g. cents)")

class AccountListResponse(BaseModel):
    account_ids: list[int]

class MoneyMovementRequest(BaseModel):
    amount: int = Field(..., ge=1, description="Amount in minor units (must be >= 1)")

class WithdrawalRequestResponse(BaseModel):
    id: int
    account_id: int
    amount: int
    requester: str
    approvals: list[str]
    executed: bool

class ApprovalsResponse(BaseModel):
    count: int

class JournalEntryResponse(BaseModel):
    id: int
    ts: datetime
    account_id: int
    principal: str
    amount: int
    type: Literal["DEBIT", "CREDIT"]
    request_id: Optional[int] = Field(default=None, description="Withdrawal request paid out by a debit")

class StatementResponse(BaseModel):
    items: list[JournalEntryResponse]
    next_cursor: Optional[str] = None
