from decimal import Decimal
from typing import Dict, Optional


class ProcessingError(Exception):
    """
    An event was rejected. Never fatal: the event is skipped, nothing is
    mutated, and processing carries on with the next one.
    """


class MalformedAmount(ProcessingError):
    def __init__(self, transaction_id: int, amount: object):
        self.transaction_id = transaction_id
        self.amount = amount
        super().__init__(f"tx {transaction_id}: malformed amount {amount!r}")


class DuplicateTransaction(ProcessingError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"tx {transaction_id}: transaction id already used")


class InsufficientFunds(ProcessingError):
    def __init__(self, client_id: int, transaction_id: int, available: Decimal, requested: Decimal):
        self.client_id = client_id
        self.transaction_id = transaction_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"tx {transaction_id}: client {client_id} has {available} available, {requested} requested"
        )


class UnknownTransaction(ProcessingError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"tx {transaction_id}: no such deposit or withdrawal")


class ClientMismatch(ProcessingError):
    def __init__(self, transaction_id: int, owner_id: int, client_id: int):
        self.transaction_id = transaction_id
        self.owner_id = owner_id
        self.client_id = client_id
        super().__init__(
            f"tx {transaction_id}: belongs to client {owner_id}, referenced by client {client_id}"
        )


class AlreadyDisputed(ProcessingError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"tx {transaction_id}: already disputed")


class NotDisputed(ProcessingError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"tx {transaction_id}: not under dispute")


class NotDisputable(ProcessingError):
    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"tx {transaction_id}: withdrawals cannot be disputed")


class AccountLocked(ProcessingError):
    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"client {client_id}: account is locked")


class MalformedRow(ProcessingError):
    def __init__(self, row: Optional[Dict[str, str]], reason: str):
        self.row = row
        self.reason = reason
        super().__init__(f"malformed row {row}: {reason}")


class InputFormatError(Exception):
    """The input stream itself is unreadable. Ends the run."""
