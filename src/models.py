from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional, Union

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class AccountStatus(Enum):
    ACTIVE = "active"
    UNDER_DISPUTE = "under_dispute"
    LOCKED = "locked"


class ProcessingResult(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Transaction:
    client_id: int
    transaction_id: int

    transaction_type: ClassVar[TransactionType]

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class FundsTransaction(Transaction):
    """A transaction that moves money and is recorded in history."""

    amount: Decimal

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True, repr=False)
class Deposit(FundsTransaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.DEPOSIT


@dataclass(frozen=True, repr=False)
class Withdrawal(FundsTransaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.WITHDRAWAL


@dataclass(frozen=True, repr=False)
class Dispute(Transaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.DISPUTE


@dataclass(frozen=True, repr=False)
class Resolve(Transaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.RESOLVE


@dataclass(frozen=True, repr=False)
class Chargeback(Transaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.CHARGEBACK


TransactionRecord = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]

TRANSACTION_CLASSES = {
    cls.transaction_type: cls for cls in (Deposit, Withdrawal, Dispute, Resolve, Chargeback)
}


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    status: AccountStatus = AccountStatus.ACTIVE
    disputed_transaction_id: Optional[int] = None

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    @property
    def locked(self) -> bool:
        return self.status is AccountStatus.LOCKED

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, transaction_id: int, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount
        self.status = AccountStatus.UNDER_DISPUTE
        self.disputed_transaction_id = transaction_id

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount
        self.status = AccountStatus.ACTIVE
        self.disputed_transaction_id = None

    def remove_held(self, amount: Decimal) -> None:
        """Charge back held funds; the account is frozen from here on."""
        self.held -= amount
        self.status = AccountStatus.LOCKED
        self.disputed_transaction_id = None


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.rejected = 0
        self.rejections_by_reason = {}

    def record_success(self):
        self.processed += 1

    def record_rejection(self, reason: str):
        self.rejected += 1
        self.rejections_by_reason[reason] = self.rejections_by_reason.get(reason, 0) + 1

    def __repr__(self) -> str:
        return f"ProcessingStats(processed={self.processed}, rejected={self.rejected})"
