from typing import Dict, Iterator, Optional

from models import ClientAccount


class LedgerTable:
    """
    Client accounts for a single input stream, created lazily on first reference.
    Owned by one processor; not shared between streams, so no locking.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __iter__(self) -> Iterator[ClientAccount]:
        return iter(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)
