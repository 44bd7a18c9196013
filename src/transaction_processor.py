import logging
from typing import Optional

from config import StrictMode
from errors import (
    AccountLockedError,
    InsufficientFundsError,
    InvalidStateError,
    TransactionError,
    UnknownTransactionError,
)
from history import HistoryStore
from ledger_table import LedgerTable
from models import (
    AccountStatus,
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    ProcessingResult,
    ProcessingStats,
    Resolve,
    TransactionRecord,
    Withdrawal,
)

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions, one at a time and in input order, to client accounts.

    Each handler validates first and raises a TransactionError before touching
    any state, so a rejected record leaves the ledger and history unchanged.
    Outside strict mode those errors are logged and the record is skipped;
    in strict mode they propagate and abort the run.

    Only one dispute per account can be open at a time: the account remembers
    the disputed transaction, and resolve/chargeback must reference it.
    """

    def __init__(
        self,
        ledger: Optional[LedgerTable] = None,
        history: Optional[HistoryStore] = None,
        strict_mode: StrictMode = StrictMode.OFF,
        stats: Optional[ProcessingStats] = None,
    ):
        self.ledger = ledger if ledger is not None else LedgerTable()
        self.history = history if history is not None else HistoryStore()
        self.strict_mode = strict_mode
        self.stats = stats if stats is not None else ProcessingStats()

    def process_transaction(self, transaction: TransactionRecord) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the account
            REJECTED: Skipped without any state change (non-strict mode only)

        Raises:
            TransactionError: In strict mode, for any record that would be skipped
        """
        try:
            self._apply(transaction)
        except TransactionError as e:
            self.stats.record_rejection(e.reason)
            if self.strict_mode is StrictMode.ON:
                raise
            logger.debug(f"Skipping {transaction}: {e}")
            return ProcessingResult.REJECTED

        self.stats.record_success()
        return ProcessingResult.SUCCESS

    def _apply(self, transaction: TransactionRecord) -> None:
        account = self.ledger.get_or_create_account(transaction.client_id)

        if account.locked:
            raise AccountLockedError(f"account {account.client_id} is locked", transaction)

        match transaction:
            case Deposit():
                self._handle_deposit(account, transaction)
            case Withdrawal():
                self._handle_withdrawal(account, transaction)
            case Dispute():
                self._handle_dispute(account, transaction)
            case Resolve():
                self._handle_resolve(account, transaction)
            case Chargeback():
                self._handle_chargeback(account, transaction)
            case _:
                raise TypeError(f"unsupported transaction record: {transaction!r}")

    def _handle_deposit(self, account: ClientAccount, transaction: Deposit) -> None:
        account.credit(transaction.amount)
        self.history.record(transaction.transaction_id, transaction.amount, transaction.client_id)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Withdrawal) -> None:
        if transaction.amount > account.available:
            raise InsufficientFundsError(
                f"client {account.client_id} can't withdraw {transaction.amount}, "
                f"only {account.available} available",
                transaction,
            )

        account.debit(transaction.amount)
        self.history.record(transaction.transaction_id, transaction.amount, transaction.client_id)

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> None:
        if account.status is not AccountStatus.ACTIVE:
            raise InvalidStateError(
                f"client {account.client_id} already has tx {account.disputed_transaction_id} under dispute",
                transaction,
            )

        amount = self._lookup_amount(transaction)
        account.hold(transaction.transaction_id, amount)

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> None:
        self._check_disputed(account, transaction)
        amount = self._lookup_amount(transaction)
        account.release_hold(amount)

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> None:
        self._check_disputed(account, transaction)
        amount = self._lookup_amount(transaction)
        account.remove_held(amount)
        logger.debug(f"Account {account.client_id} locked after chargeback of tx {transaction.transaction_id}")

    def _check_disputed(self, account: ClientAccount, transaction: TransactionRecord) -> None:
        if (
            account.status is not AccountStatus.UNDER_DISPUTE
            or account.disputed_transaction_id != transaction.transaction_id
        ):
            raise InvalidStateError(
                f"tx {transaction.transaction_id} is not under dispute for client {account.client_id}",
                transaction,
            )

    def _lookup_amount(self, transaction: TransactionRecord):
        amount = self.history.lookup(transaction.transaction_id, transaction.client_id)
        if amount is None:
            raise UnknownTransactionError(
                f"tx {transaction.transaction_id} not found for client {transaction.client_id}",
                transaction,
            )
        return amount
