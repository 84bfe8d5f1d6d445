import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Optional

from account import ClientAccount
from models import AccountSnapshot, ProcessingStats, Transaction, TransactionType

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class TransactionEngine:
    """
    Routes transactions to client accounts, strictly in input order.
    Accounts are created on first sight and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts keyed by client id."""
        return dict(self._accounts)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def process(self, transaction: Transaction) -> None:
        account = self.get_or_create_account(transaction.client_id)
        result = account.process(transaction)
        self._stats.record(result)
        logger.debug(f"{transaction}: {result.value}")

    def process_all(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.process(transaction)

    def snapshot(self) -> List[AccountSnapshot]:
        return [account.snapshot() for account in self._accounts.values()]

    def process_file(self, filepath: str) -> List[AccountSnapshot]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        self.process_all(self.read_transactions(filepath))
        logger.info(f"Finished processing: {self._stats}")
        return self.snapshot()

    def read_transactions(self, filepath: str) -> Iterator[Transaction]:
        """Read CSV rows lazily, skipping the ones that cannot be parsed."""
        with open(filepath, "r", newline="") as f:
            reader = csv.DictReader(f)
            for row in reader:
                transaction = parse_csv_row(row)
                if transaction is None:
                    self._stats.record_skipped_row()
                    continue
                yield transaction


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Optional[Transaction]:
    """Parse CSV row into Transaction, or None if the row is malformed."""
    try:
        normalized = {
            k.strip(): v.strip()
            for k, v in row.items()
            if isinstance(k, str) and isinstance(v, str)
        }

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_id(normalized["client"], MAX_CLIENT_ID)
        transaction_id = _parse_id(normalized["tx"], MAX_TRANSACTION_ID)

        amount = None
        amount_str = normalized.get("amount", "")
        if transaction_type in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL):
            amount = Decimal(amount_str)
            if not amount.is_finite() or amount < 0:
                raise ValueError(f"invalid amount {amount_str!r}")

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse row {row}: {e}")
        return None


def _parse_id(value: str, maximum: int) -> int:
    parsed = int(value)
    if not 0 <= parsed <= maximum:
        raise ValueError(f"id {parsed} out of range 0..{maximum}")
    return parsed
