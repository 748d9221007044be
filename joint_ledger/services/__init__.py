from .registry import Account, AccountRegistry
from .repository import JournalRepository
from .sink import JournalValueSink, ValueSink
from .withdrawals import WithdrawalLedger, WithdrawalRequest

__all__ = [
    "Account",
    "AccountRegistry",
    "JournalRepository",
    "JournalValueSink",
    "ValueSink",
    "WithdrawalLedger",
    "WithdrawalRequest",
]
