from decimal import Decimal
from typing import Dict, Optional, Tuple


class HistoryStore:
    """
    Amounts of past deposits and withdrawals, keyed by transaction ID.
    Used to resolve the amount a dispute, resolve or chargeback refers to.
    Entries are never removed.
    """

    def __init__(self):
        self._entries: Dict[int, Tuple[Optional[int], Decimal]] = {}

    def record(self, transaction_id: int, amount: Decimal, client_id: Optional[int] = None) -> None:
        """Store amount for future dispute lookups."""
        self._entries[transaction_id] = (client_id, amount)

    def lookup(self, transaction_id: int, client_id: Optional[int] = None) -> Optional[Decimal]:
        """
        Return the recorded amount, or None if the transaction was never
        recorded. An entry owned by a different client is treated as absent.
        """
        entry = self._entries.get(transaction_id)
        if entry is None:
            return None

        owner, amount = entry
        if client_id is not None and owner is not None and owner != client_id:
            return None
        return amount

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
