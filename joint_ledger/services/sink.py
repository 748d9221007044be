from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.identity import Principal
from .repository import JournalRepository


logger = logging.getLogger(__name__)


class ValueSink(Protocol):
    """Moves value into and out of the custodial ledger."""

    def credit(self, account_id: int, amount: int, *, principal: Principal) -> None: ...

    def pay_out(
        self,
        principal: Principal,
        amount: int,
        *,
        account_id: int,
        request_id: int,
    ) -> bool: ...


class JournalValueSink:
    """Value sink that records every movement as a committed journal row.

    ``credit`` lets database errors propagate so the deposit is rejected;
    ``pay_out`` reports them as a failed transfer so the ledger can roll back.
    """

    def __init__(self, engine_factory: Callable[[], Engine], ledger_id: str) -> None:
        self.engine_factory = engine_factory
        self.ledger_id = ledger_id

    def _write(self, **fields) -> None:
        with Session(self.engine_factory()) as session:
            JournalRepository(session).add_entry(ledger_id=self.ledger_id, **fields)
            session.commit()

    def credit(self, account_id: int, amount: int, *, principal: Principal) -> None:
        self._write(
            account_id=account_id,
            principal=principal,
            amount=amount,
            entry_type="CREDIT",
        )

    def pay_out(
        self,
        principal: Principal,
        amount: int,
        *,
        account_id: int,
        request_id: int,
    ) -> bool:
        try:
            self._write(
                account_id=account_id,
                principal=principal,
                amount=-amount,
                entry_type="DEBIT",
                request_id=request_id,
            )
        except SQLAlchemyError:
            logger.exception(
                "journal.write_failed",
                extra={"account_id": account_id, "request_id": request_id},
            )
            return False
        return True
