from .db import JournalEntry as JournalEntryModel
from .schemas import (
    AccountCreate,
    AccountListResponse,
    AccountResponse,
    ApprovalsResponse,
    JournalEntryResponse,
    MoneyMovementRequest,
    StatementResponse,
    WithdrawalRequestResponse,
)

__all__ = [
    "AccountCreate",
    "AccountListResponse",
    "AccountResponse",
    "ApprovalsResponse",
    "JournalEntryResponse",
    "MoneyMovementRequest",
    "StatementResponse",
    "WithdrawalRequestResponse",
    "JournalEntryModel",
]
