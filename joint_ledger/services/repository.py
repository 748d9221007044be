from __future__ import annotations

from typing import Optional

from sqlmodel import Session, select

from ..models import JournalEntryModel


class JournalRepository:
    """Thin data access layer around the SQLModel session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_entry(
        self,
        *,
        ledger_id: str,
        account_id: int,
        principal: str,
        amount: int,
        entry_type: str,
        request_id: Optional[int] = None,
    ) -> JournalEntryModel:
        entry = JournalEntryModel(
            ledger_id=ledger_id,
            account_id=account_id,
            principal=principal,
            amount=amount,
            type=entry_type,
            request_id=request_id,
        )
        self.session.add(entry)
        self.session.flush()
        self.session.refresh(entry)
        return entry

    def list_entries(
        self,
        ledger_id: str,
        account_id: int,
        *,
        limit: int,
        before_id: Optional[int] = None,
    ) -> list[JournalEntryModel]:
        stmt = (
            select(JournalEntryModel)
            .where(JournalEntryModel.ledger_id == ledger_id)
            .where(JournalEntryModel.account_id == account_id)
        )
        if before_id is not None:
            stmt = stmt.where(JournalEntryModel.id < before_id)
        stmt = stmt.order_by(JournalEntryModel.id.desc()).limit(limit)
        return list(self.session.exec(stmt))
