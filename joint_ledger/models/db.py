from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional
from sqlmodel import Field, SQLModel

class JournalEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    ledger_id: str = Field(index=True)
    account_id: int = Field(index=True)
    principal: str
    amount: int
    type: str
    request_id: Optional[int] = None
