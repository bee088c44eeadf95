import logging
from decimal import Decimal
from typing import List, Optional

from errors import (
    AccountLocked,
    AlreadyDisputed,
    ClientMismatch,
    DuplicateTransaction,
    InsufficientFunds,
    MalformedAmount,
    NotDisputable,
    NotDisputed,
    UnknownTransaction,
)
from models import (
    AMOUNT_PLACES,
    MAX_AMOUNT,
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    DisputeState,
    RecordKind,
    Resolve,
    Transaction,
    TransactionRecord,
    Withdrawal,
)
from stores import AccountStore, RecordStore

logger = logging.getLogger(__name__)


class LedgerProcessor:
    """
    Applies transactions to client accounts, one at a time, in input order.

    process() raises a ProcessingError subclass when an event is rejected;
    a rejected event leaves accounts and records exactly as they were.
    finalize() hands back the accounts once the stream has ended, after
    which the processor can no longer be used.
    """

    def __init__(
        self,
        accounts: Optional[AccountStore] = None,
        records: Optional[RecordStore] = None,
        allow_withdrawal_disputes: bool = True,
    ):
        self._accounts = accounts if accounts is not None else AccountStore()
        self._records = records if records is not None else RecordStore()
        self._allow_withdrawal_disputes = allow_withdrawal_disputes
        self._finalized = False

    def process(self, transaction: Transaction) -> None:
        if self._finalized:
            raise RuntimeError("processor already finalized")

        account = self._accounts.get_or_create(transaction.client_id)

        if account.locked:
            raise AccountLocked(account.client_id)

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
                raise TypeError(f"not a transaction: {transaction!r}")

    def finalize(self) -> List[ClientAccount]:
        """Return every account ever referenced, ordered by client id."""
        if self._finalized:
            raise RuntimeError("processor already finalized")
        self._finalized = True
        return self._accounts.all_accounts()

    def _handle_deposit(self, account: ClientAccount, transaction: Deposit) -> None:
        self._check_amount(transaction.transaction_id, transaction.amount)
        self._records.put(
            transaction.transaction_id,
            TransactionRecord(
                transaction_id=transaction.transaction_id,
                client_id=transaction.client_id,
                amount=transaction.amount,
                kind=RecordKind.DEPOSIT,
            )
        )
        account.credit(transaction.amount)
        logger.debug(f"Deposit tx {transaction.transaction_id}: credited {transaction.amount} to client {account.client_id}")

    def _handle_withdrawal(self, account: ClientAccount, transaction: Withdrawal) -> None:
        self._check_amount(transaction.transaction_id, transaction.amount)

        if transaction.transaction_id in self._records:
            raise DuplicateTransaction(transaction.transaction_id)

        if account.available < transaction.amount:
            raise InsufficientFunds(
                account.client_id, transaction.transaction_id, account.available, transaction.amount
            )

        self._records.put(
            transaction.transaction_id,
            TransactionRecord(
                transaction_id=transaction.transaction_id,
                client_id=transaction.client_id,
                amount=transaction.amount,
                kind=RecordKind.WITHDRAWAL,
            )
        )
        account.debit(transaction.amount)
        logger.debug(f"Withdrawal tx {transaction.transaction_id}: debited {transaction.amount} from client {account.client_id}")

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> None:
        original = self._find_original(transaction.transaction_id, transaction.client_id)

        if original.dispute_state is DisputeState.DISPUTED:
            raise AlreadyDisputed(original.transaction_id)
        if original.dispute_state is DisputeState.CHARGED_BACK:
            raise NotDisputed(original.transaction_id)

        # A disputed withdrawal is held like a deposit: available drops again.
        if original.kind is RecordKind.WITHDRAWAL and not self._allow_withdrawal_disputes:
            raise NotDisputable(original.transaction_id)

        account.hold(original.amount)
        self._records.set_dispute_state(original.transaction_id, DisputeState.DISPUTED)
        logger.debug(f"Dispute tx {original.transaction_id}: held {original.amount} for client {account.client_id}")

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> None:
        original = self._find_disputed(transaction.transaction_id, transaction.client_id)

        account.release_hold(original.amount)
        self._records.set_dispute_state(original.transaction_id, DisputeState.NORMAL)
        logger.debug(f"Resolve tx {original.transaction_id}: released {original.amount} for client {account.client_id}")

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> None:
        original = self._find_disputed(transaction.transaction_id, transaction.client_id)

        account.remove_held(original.amount)
        account.lock()
        self._records.set_dispute_state(original.transaction_id, DisputeState.CHARGED_BACK)
        logger.info(f"Chargeback tx {original.transaction_id}: removed {original.amount}, client {account.client_id} locked")

    def _find_original(self, transaction_id: int, client_id: int) -> TransactionRecord:
        original = self._records.get(transaction_id)

        if original is None:
            raise UnknownTransaction(transaction_id)

        if original.client_id != client_id:
            raise ClientMismatch(transaction_id, original.client_id, client_id)

        return original

    def _find_disputed(self, transaction_id: int, client_id: int) -> TransactionRecord:
        original = self._find_original(transaction_id, client_id)

        if not original.is_disputed:
            raise NotDisputed(transaction_id)

        return original

    @staticmethod
    def _check_amount(transaction_id: int, amount: Decimal) -> None:
        if not isinstance(amount, Decimal) or not amount.is_finite():
            raise MalformedAmount(transaction_id, amount)
        if amount < 0 or amount > MAX_AMOUNT:
            raise MalformedAmount(transaction_id, amount)
        if _fractional_places(amount) > AMOUNT_PLACES:
            raise MalformedAmount(transaction_id, amount)


def _fractional_places(amount: Decimal) -> int:
    _, digits, exponent = amount.as_tuple()
    # Trailing zeros do not count: 1.50000 has one significant fractional digit.
    while exponent < 0 and digits and digits[-1] == 0:
        digits = digits[:-1]
        exponent += 1
    return max(0, -exponent)
