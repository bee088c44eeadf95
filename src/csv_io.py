import csv
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, TextIO

from errors import InputFormatError, MalformedAmount, MalformedRow
from models import (
    AMOUNT_PLACES,
    LEDGER_CONTEXT,
    MAX_CLIENT_ID,
    MAX_TX_ID,
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    TransactionType,
    Withdrawal,
)

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

_QUANTUM = Decimal(1).scaleb(-AMOUNT_PLACES)


def read_rows(stream: TextIO) -> Iterator[Dict[str, str]]:
    """
    Yield CSV rows with keys and values stripped of whitespace.
    Raises InputFormatError if the header lacks a required column.
    """
    reader = csv.DictReader(stream)
    if reader.fieldnames is None:
        return

    columns = {name.strip().lower() for name in reader.fieldnames if name}
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise InputFormatError(f"missing columns {missing} in header {reader.fieldnames}")

    for row in reader:
        # Short rows fill with None, long rows collect extras under the None key.
        yield {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}


def parse_row(row: Dict[str, str]) -> Transaction:
    """Parse a normalized CSV row into a Transaction."""
    try:
        transaction_type = TransactionType(row.get("type", "").lower())
    except ValueError:
        raise MalformedRow(row, f"unknown transaction type {row.get('type')!r}")

    client_id = _parse_id(row, "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(row, "tx", MAX_TX_ID)

    match transaction_type:
        case TransactionType.DEPOSIT:
            return Deposit(client_id, transaction_id, _parse_amount(row, transaction_id))
        case TransactionType.WITHDRAWAL:
            return Withdrawal(client_id, transaction_id, _parse_amount(row, transaction_id))
        case TransactionType.DISPUTE:
            return Dispute(client_id, transaction_id)
        case TransactionType.RESOLVE:
            return Resolve(client_id, transaction_id)
        case TransactionType.CHARGEBACK:
            return Chargeback(client_id, transaction_id)


def _parse_id(row: Dict[str, str], column: str, upper_bound: int) -> int:
    value = row.get(column, "")
    if not (value.isascii() and value.isdigit()):
        raise MalformedRow(row, f"{column} {value!r} is not an unsigned integer")
    parsed = int(value)
    if not 0 <= parsed <= upper_bound:
        raise MalformedRow(row, f"{column} {parsed} out of range")
    return parsed


def _parse_amount(row: Dict[str, str], transaction_id: int) -> Decimal:
    amount_str = row.get("amount", "")
    if not amount_str:
        raise MalformedAmount(transaction_id, None)
    try:
        return Decimal(amount_str)
    except InvalidOperation:
        raise MalformedAmount(transaction_id, amount_str)


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    rounded = value.quantize(_QUANTUM, rounding=ROUND_HALF_EVEN, context=LEDGER_CONTEXT)
    normalized = rounded.normalize(context=LEDGER_CONTEXT)
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


def account_row(account: ClientAccount) -> Dict[str, str]:
    return {
        "client": str(account.client_id),
        "available": format_decimal(account.available),
        "held": format_decimal(account.held),
        "total": format_decimal(account.total),
        "locked": str(account.locked).lower(),
    }


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    writer = csv.DictWriter(stream, fieldnames=OUTPUT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for account in accounts:
        writer.writerow(account_row(account))
