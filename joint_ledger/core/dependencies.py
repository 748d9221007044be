from fastapi import Depends, Request
from sqlmodel import Session

from ..services import AccountRegistry, JournalRepository, WithdrawalLedger
from .db import get_session
from .identity import Principal

def get_principal(request: Request) -> Principal:
    return request.app.state.identity.resolve(request)

def get_registry(request: Request) -> AccountRegistry:
    return request.app.state.registry

def get_withdrawal_ledger(request: Request) -> WithdrawalLedger:
    return request.app.state.ledger

def get_journal_repository(session: Session = Depends(get_session)) -> JournalRepository:
    return JournalRepository(session)
