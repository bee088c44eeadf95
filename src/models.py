from collections import Counter
from dataclasses import dataclass, field
from decimal import Context, Decimal
from enum import Enum
from typing import ClassVar, Union

MAX_CLIENT_ID = 2**16 - 1
MAX_TX_ID = 2**32 - 1
AMOUNT_PLACES = 4
MAX_AMOUNT = Decimal("999999999999999999.9999")

# Balances are sums of at most 2**32 amounts below MAX_AMOUNT: 28 integer
# digits plus AMOUNT_PLACES always fit, so ledger arithmetic never rounds.
LEDGER_CONTEXT = Context(prec=40)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class RecordKind(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


@dataclass(frozen=True)
class Deposit:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type: ClassVar[TransactionType] = TransactionType.DEPOSIT


@dataclass(frozen=True)
class Withdrawal:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type: ClassVar[TransactionType] = TransactionType.WITHDRAWAL


@dataclass(frozen=True)
class Dispute:
    client_id: int
    transaction_id: int

    transaction_type: ClassVar[TransactionType] = TransactionType.DISPUTE


@dataclass(frozen=True)
class Resolve:
    client_id: int
    transaction_id: int

    transaction_type: ClassVar[TransactionType] = TransactionType.RESOLVE


@dataclass(frozen=True)
class Chargeback:
    client_id: int
    transaction_id: int

    transaction_type: ClassVar[TransactionType] = TransactionType.CHARGEBACK


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.add(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.subtract(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        self.debit(amount)
        self.held = LEDGER_CONTEXT.add(self.held, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.held = LEDGER_CONTEXT.subtract(self.held, amount)
        self.credit(amount)

    def remove_held(self, amount: Decimal) -> None:
        self.held = LEDGER_CONTEXT.subtract(self.held, amount)

    def lock(self) -> None:
        self.locked = True


@dataclass
class TransactionRecord:
    """
    What a deposit or withdrawal leaves behind so that a later dispute,
    resolve or chargeback can find the amount and owner again.
    """

    transaction_id: int
    client_id: int
    amount: Decimal
    kind: RecordKind
    dispute_state: DisputeState = DisputeState.NORMAL

    @property
    def is_disputed(self) -> bool:
        return self.dispute_state is DisputeState.DISPUTED


@dataclass
class ProcessingStats:
    """Counters for accepted and rejected events over one run."""

    processed: int = 0
    failed: int = 0
    failures_by_reason: Counter = field(default_factory=Counter)

    def record_success(self) -> None:
        self.processed += 1

    def record_failure(self, reason: str) -> None:
        self.failed += 1
        self.failures_by_reason[reason] += 1

    def summary(self) -> str:
        line = f"Processed: {self.processed}, Failed: {self.failed}"
        if self.failures_by_reason:
            reasons = ", ".join(f"{name}={count}" for name, count in sorted(self.failures_by_reason.items()))
            line += f" ({reasons})"
        return line
