import logging
from typing import Dict, Optional, TextIO

from config import EngineConfig
from csv_io import read_transactions, write_accounts
from errors import TransactionError
from models import ClientAccount, ProcessingStats
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Runs a transaction stream through a fresh processor in a single
    sequential pass and keeps the resulting account snapshot.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config if config is not None else EngineConfig()
        self._processor = self._new_processor()

    def _new_processor(self) -> TransactionProcessor:
        # Every run owns its own ledger and history
        return TransactionProcessor(strict_mode=self._config.strict_mode, stats=ProcessingStats())

    @property
    def stats(self) -> ProcessingStats:
        return self._processor.stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        """Process CSV text stream and return final account states."""
        self._processor = self._new_processor()

        logger.info(f"Starting processing (strict mode {self._config.strict_mode.value})")

        for transaction in read_transactions(stream):
            try:
                self._processor.process_transaction(transaction)
            except TransactionError as e:
                logger.error(f"Aborting on {transaction}: {e}")
                raise

        stats = self._processor.stats
        logger.info(
            f"Processed: {stats.processed}, "
            f"Rejected: {stats.rejected}, "
            f"Accounts: {len(self._processor.ledger)}"
        )
        for reason, count in sorted(stats.rejections_by_reason.items()):
            logger.info(f"  {reason}: {count}")

        return self._processor.ledger.get_all_accounts()

    def write_report(self, stream: TextIO) -> None:
        """Write the snapshot of the last run as CSV."""
        write_accounts(self._processor.ledger, stream, sort_by_client=self._config.sort_output)
