import csv
import logging
import os
import sys

from csv_io import write_accounts
from errors import InputFormatError
from ledger_engine import LedgerEngine

logging.basicConfig(
    level=os.environ.get("LEDGER_LOG_LEVEL", "WARNING").upper(),
    format="%(levelname)s: %(message)s",
    stream=sys.stderr,
)


def main():
    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    filepath = sys.argv[1]
    engine = LedgerEngine()
    try:
        accounts = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error, InputFormatError) as e:
        print(f"Cannot process {filepath}: {e}", file=sys.stderr)
        sys.exit(1)

    write_accounts(accounts.values(), sys.stdout)


if __name__ == "__main__":
    main()
