import logging
from typing import Dict, List, Optional

from errors import DuplicateTransaction, UnknownTransaction
from models import ClientAccount, DisputeState, TransactionRecord

logger = logging.getLogger(__name__)


class AccountStore:
    """Client accounts, created on first reference and never removed."""

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
            logger.debug(f"Created account for client {client_id}")
        return self._accounts[client_id]

    def get(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def all_accounts(self) -> List[ClientAccount]:
        """Return all accounts ordered by client id (for final output)."""
        return [self._accounts[client_id] for client_id in sorted(self._accounts)]

    def __len__(self) -> int:
        return len(self._accounts)


class RecordStore:
    """
    Deposit and withdrawal records keyed by transaction id, kept for
    dispute lookups. Records are only ever added, never deleted.
    """

    def __init__(self):
        self._records: Dict[int, TransactionRecord] = {}

    def put(self, transaction_id: int, record: TransactionRecord) -> None:
        if transaction_id in self._records:
            raise DuplicateTransaction(transaction_id)
        self._records[transaction_id] = record

    def get(self, transaction_id: int) -> Optional[TransactionRecord]:
        """Retrieve stored record by transaction id."""
        return self._records.get(transaction_id)

    def set_dispute_state(self, transaction_id: int, state: DisputeState) -> None:
        record = self._records.get(transaction_id)
        if record is None:
            raise UnknownTransaction(transaction_id)
        record.dispute_state = state

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._records

    def __len__(self) -> int:
        return len(self._records)
