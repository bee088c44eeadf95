import logging
from typing import Dict, Iterable, Optional

from csv_io import parse_row, read_rows
from errors import ProcessingError
from ledger_processor import LedgerProcessor
from models import ClientAccount, ProcessingStats

logger = logging.getLogger(__name__)


class LedgerEngine:
    """
    Feeds CSV rows through a LedgerProcessor in file order.
    Rejected rows are logged and counted, never fatal.
    """

    def __init__(self, processor: Optional[LedgerProcessor] = None):
        self._processor = processor if processor is not None else LedgerProcessor()
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", encoding="utf-8-sig", newline="") as f:
            return self.process_rows(read_rows(f))

    def process_rows(self, rows: Iterable[Dict[str, str]]) -> Dict[int, ClientAccount]:
        for row_number, row in enumerate(rows, start=1):
            try:
                self._processor.process(parse_row(row))
            except ProcessingError as e:
                self.stats.record_failure(type(e).__name__)
                logger.warning(f"Row {row_number} rejected: {e}")
            else:
                self.stats.record_success()

        logger.info(self.stats.summary())

        return {account.client_id: account for account in self._processor.finalize()}
