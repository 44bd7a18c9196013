from typing import Optional

from models import Transaction


class PaymentsError(Exception):
    """Base class for every error the engine raises on purpose."""


class ConfigError(PaymentsError):
    pass


class ParseError(PaymentsError):
    """Malformed input record. Always aborts the run."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class TransactionError(PaymentsError):
    """
    A well-formed record that cannot be applied to the current account state.
    Skipped by default, fatal in strict mode.
    """

    reason = "rejected"

    def __init__(self, message: str, transaction: Transaction):
        self.transaction = transaction
        super().__init__(message)


class UnknownTransactionError(TransactionError):
    reason = "unknown_transaction"


class InvalidStateError(TransactionError):
    reason = "invalid_state"


class AccountLockedError(InvalidStateError):
    reason = "account_locked"


class InsufficientFundsError(TransactionError):
    reason = "insufficient_funds"
