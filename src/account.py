import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from models import (
    ZERO,
    AccountSnapshot,
    ProcessingResult,
    Transaction,
    TransactionType,
    add_amounts,
    format_amount,
    subtract_amounts,
)

logger = logging.getLogger(__name__)


@dataclass
class ClientAccount:
    """
    One client's balances, lock flag and transaction history.

    The dispute state of a transaction is not stored. It is read off the
    entries of the history that share its tx id:

        [deposit|withdrawal]                  -> normal, can be disputed
        [deposit|withdrawal, dispute]         -> disputed, can be resolved
        [deposit|withdrawal, dispute, ...]    -> can be charged back
        anything else                         -> nothing applies

    Every transaction accepted by an unlocked account is appended to the
    history, including the ones that had no effect. Once locked, the account
    drops everything without recording it.
    """

    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False
    history: List[Transaction] = field(default_factory=list)
    _by_transaction_id: Dict[int, List[Transaction]] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        for transaction in self.history:
            self._by_transaction_id.setdefault(transaction.transaction_id, []).append(transaction)

    @property
    def total(self) -> Decimal:
        return add_amounts(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self.available = add_amounts(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = subtract_amounts(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        self.available = subtract_amounts(self.available, amount)
        self.held = add_amounts(self.held, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.held = subtract_amounts(self.held, amount)
        self.available = add_amounts(self.available, amount)

    def remove_held(self, amount: Decimal) -> None:
        self.held = subtract_amounts(self.held, amount)

    def entries_for(self, transaction_id: int) -> List[Transaction]:
        """History entries referencing transaction_id, in application order."""
        return list(self._by_transaction_id.get(transaction_id, ()))

    def process(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            SUCCESS: Balances changed
            IGNORED: Not applicable (insufficient funds, no open dispute, ...), still recorded
            DROPPED: Account is locked, transaction discarded
        """
        if self.locked:
            logger.debug(f"Client {self.client_id}: account locked, dropping {transaction}")
            return ProcessingResult.DROPPED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                result = self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                result = self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                result = self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                result = self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                result = self._handle_chargeback(transaction)

        self._record(transaction)
        return result

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client=self.client_id,
            available=format_amount(self.available),
            held=format_amount(self.held),
            total=format_amount(self.total),
            locked=self.locked,
        )

    def _record(self, transaction: Transaction) -> None:
        self.history.append(transaction)
        self._by_transaction_id.setdefault(transaction.transaction_id, []).append(transaction)

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        self.credit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        if self.available >= transaction.amount:
            self.debit(transaction.amount)
            return ProcessingResult.SUCCESS
        logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds (available {self.available}, requested {transaction.amount})")
        return ProcessingResult.IGNORED

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        match self.entries_for(transaction.transaction_id):
            case [original] if original.is_monetary:
                # Withdrawals are disputed the same way as deposits: the amount moves into held
                self.hold(original.amount)
                return ProcessingResult.SUCCESS
        logger.debug(f"Dispute for tx {transaction.transaction_id}: transaction unknown or not in a disputable state")
        return ProcessingResult.IGNORED

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        match self.entries_for(transaction.transaction_id):
            case [original, Transaction(transaction_type=TransactionType.DISPUTE)] if original.is_monetary:
                self.release_hold(original.amount)
                return ProcessingResult.SUCCESS
        logger.debug(f"Resolve for tx {transaction.transaction_id}: no open dispute")
        return ProcessingResult.IGNORED

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        match self.entries_for(transaction.transaction_id):
            case [original, Transaction(transaction_type=TransactionType.DISPUTE), *_] if original.is_monetary:
                self.remove_held(original.amount)
                self.locked = True
                logger.info(f"Client {self.client_id}: chargeback on tx {transaction.transaction_id}, account locked")
                return ProcessingResult.SUCCESS
        logger.debug(f"Chargeback for tx {transaction.transaction_id}: no dispute on record")
        return ProcessingResult.IGNORED
