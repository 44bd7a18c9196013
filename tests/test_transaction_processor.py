import sys
import os
import logging
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from config import StrictMode
from errors import (
    AccountLockedError,
    InsufficientFundsError,
    InvalidStateError,
    UnknownTransactionError,
)
from models import (
    AccountStatus,
    Chargeback,
    Deposit,
    Dispute,
    ProcessingResult,
    Resolve,
    Withdrawal,
)
from transaction_processor import TransactionProcessor


def snapshot(account):
    return (account.available, account.held, account.status, account.disputed_transaction_id)


class TestTransactionProcessor:
    def setup_method(self):
        self.processor = TransactionProcessor()

    def account(self, client_id=1):
        return self.processor.ledger.get_or_create_account(client_id)

    def test_deposit(self):
        result = self.processor.process_transaction(Deposit(1, 1, Decimal("100")))

        assert result == ProcessingResult.SUCCESS
        assert self.account().available == Decimal("100")
        assert self.account().total == Decimal("100")
        assert self.processor.history.lookup(1) == Decimal("100")

    def test_withdrawal_success(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        result = self.processor.process_transaction(Withdrawal(1, 2, Decimal("60")))

        assert result == ProcessingResult.SUCCESS
        assert self.account().available == Decimal("40")
        assert self.processor.history.lookup(2) == Decimal("60")

    def test_withdrawal_of_entire_balance(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("1.2345")))
        result = self.processor.process_transaction(Withdrawal(1, 2, Decimal("1.2345")))

        assert result == ProcessingResult.SUCCESS
        assert self.account().available == Decimal("0")

    def test_withdrawal_insufficient_funds(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("50")))
        result = self.processor.process_transaction(Withdrawal(1, 2, Decimal("100")))

        assert result == ProcessingResult.REJECTED
        assert self.account().available == Decimal("50")
        assert 2 not in self.processor.history

    def test_withdrawal_on_new_account_creates_it(self):
        result = self.processor.process_transaction(Withdrawal(7, 1, Decimal("1")))

        assert result == ProcessingResult.REJECTED
        assert 7 in self.processor.ledger
        assert self.account(7).total == Decimal("0")

    def test_dispute(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        result = self.processor.process_transaction(Dispute(1, 1))

        assert result == ProcessingResult.SUCCESS
        account = self.account()
        assert account.available == Decimal("0")
        assert account.held == Decimal("100")
        assert account.total == Decimal("100")
        assert account.status is AccountStatus.UNDER_DISPUTE

    def test_dispute_withdrawal_holds_its_amount(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        self.processor.process_transaction(Withdrawal(1, 2, Decimal("40")))
        result = self.processor.process_transaction(Dispute(1, 2))

        assert result == ProcessingResult.SUCCESS
        assert self.account().available == Decimal("20")
        assert self.account().held == Decimal("40")

    def test_dispute_tx_not_found(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("10")))
        before = snapshot(self.account())

        result = self.processor.process_transaction(Dispute(1, 99))

        assert result == ProcessingResult.REJECTED
        assert snapshot(self.account()) == before

    def test_dispute_wrong_client(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        result = self.processor.process_transaction(Dispute(2, 1))

        assert result == ProcessingResult.REJECTED
        assert self.account(1).held == Decimal("0")
        assert self.account(2).held == Decimal("0")

    def test_second_dispute_while_disputed_rejected(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        self.processor.process_transaction(Deposit(1, 2, Decimal("50")))
        self.processor.process_transaction(Dispute(1, 1))
        before = snapshot(self.account())

        assert self.processor.process_transaction(Dispute(1, 2)) == ProcessingResult.REJECTED
        assert self.processor.process_transaction(Dispute(1, 1)) == ProcessingResult.REJECTED
        assert snapshot(self.account()) == before

    def test_resolve(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        self.processor.process_transaction(Dispute(1, 1))
        result = self.processor.process_transaction(Resolve(1, 1))

        assert result == ProcessingResult.SUCCESS
        account = self.account()
        assert account.available == Decimal("100")
        assert account.held == Decimal("0")
        assert account.status is AccountStatus.ACTIVE

    def test_resolve_not_disputed(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        result = self.processor.process_transaction(Resolve(1, 1))
        assert result == ProcessingResult.REJECTED

    def test_resolve_other_transaction_rejected(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("5")))
        self.processor.process_transaction(Deposit(1, 2, Decimal("10")))
        self.processor.process_transaction(Dispute(1, 1))
        before = snapshot(self.account())

        assert self.processor.process_transaction(Resolve(1, 2)) == ProcessingResult.REJECTED
        assert self.processor.process_transaction(Chargeback(1, 2)) == ProcessingResult.REJECTED
        assert snapshot(self.account()) == before
        assert self.account().held >= 0

    def test_chargeback(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        self.processor.process_transaction(Dispute(1, 1))
        result = self.processor.process_transaction(Chargeback(1, 1))

        assert result == ProcessingResult.SUCCESS
        account = self.account()
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is True

    def test_chargeback_not_disputed(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        result = self.processor.process_transaction(Chargeback(1, 1))

        assert result == ProcessingResult.REJECTED
        assert self.account().locked is False

    def test_frozen_account_rejects_operations(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("100")))
        self.processor.process_transaction(Deposit(1, 2, Decimal("30")))
        self.processor.process_transaction(Dispute(1, 1))
        self.processor.process_transaction(Chargeback(1, 1))
        before = snapshot(self.account())

        for transaction in (
            Deposit(1, 3, Decimal("50")),
            Withdrawal(1, 4, Decimal("1")),
            Dispute(1, 2),
            Resolve(1, 1),
            Chargeback(1, 1),
        ):
            assert self.processor.process_transaction(transaction) == ProcessingResult.REJECTED

        assert snapshot(self.account()) == before
        assert 3 not in self.processor.history

    def test_stats_are_recorded(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("1")))
        self.processor.process_transaction(Withdrawal(1, 2, Decimal("5")))
        self.processor.process_transaction(Dispute(1, 42))

        stats = self.processor.stats
        assert stats.processed == 1
        assert stats.rejected == 2
        assert stats.rejections_by_reason == {"insufficient_funds": 1, "unknown_transaction": 1}

    def test_rejections_logged_at_debug(self, caplog):
        caplog.set_level(logging.INFO, logger="transaction_processor")
        self.processor.process_transaction(Dispute(1, 42))
        assert "tx 42 not found" not in caplog.text

        caplog.set_level(logging.DEBUG, logger="transaction_processor")
        self.processor.process_transaction(Dispute(1, 42))
        assert [r.levelno for r in caplog.records if "tx 42 not found for client 1" in r.getMessage()] == [logging.DEBUG]


class TestStrictMode:
    def setup_method(self):
        self.processor = TransactionProcessor(strict_mode=StrictMode.ON)

    def test_successful_records_do_not_raise(self):
        assert self.processor.process_transaction(Deposit(1, 1, Decimal("3"))) == ProcessingResult.SUCCESS
        assert self.processor.process_transaction(Withdrawal(1, 2, Decimal("1"))) == ProcessingResult.SUCCESS

    def test_insufficient_funds_raises(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("3")))
        with pytest.raises(InsufficientFundsError) as exc_info:
            self.processor.process_transaction(Withdrawal(1, 2, Decimal("4")))

        assert exc_info.value.transaction == Withdrawal(1, 2, Decimal("4"))
        assert self.processor.ledger.get_account(1).available == Decimal("3")

    def test_unknown_transaction_raises(self):
        with pytest.raises(UnknownTransactionError):
            self.processor.process_transaction(Dispute(1, 1))

    def test_resolve_without_dispute_raises(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("3")))
        with pytest.raises(InvalidStateError):
            self.processor.process_transaction(Resolve(1, 1))

    def test_locked_account_raises(self):
        self.processor.process_transaction(Deposit(1, 1, Decimal("3")))
        self.processor.process_transaction(Dispute(1, 1))
        self.processor.process_transaction(Chargeback(1, 1))
        with pytest.raises(AccountLockedError):
            self.processor.process_transaction(Deposit(1, 2, Decimal("1")))

    def test_rejection_is_counted_before_raising(self):
        with pytest.raises(InvalidStateError):
            self.processor.process_transaction(Chargeback(5, 5))
        assert self.processor.stats.rejections_by_reason == {"invalid_state": 1}
