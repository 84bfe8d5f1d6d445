from dataclasses import dataclass
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, ROUND_HALF_EVEN
from enum import Enum
from typing import List, Optional

ZERO = Decimal("0")
DISPLAY_PRECISION = Decimal("0.0001")
MIN_PRECISION = 28


def exact_context(*values: Decimal) -> Context:
    """
    Context wide enough that adding or subtracting `values` never rounds.
    Inexact is trapped so a result that would still lose digits raises.
    """
    digits = max(v.adjusted() for v in values) - min(v.as_tuple().exponent for v in values) + 2
    return Context(
        prec=max(digits, MIN_PRECISION),
        traps=[InvalidOperation, DivisionByZero, Overflow, Inexact],
    )


def add_amounts(a: Decimal, b: Decimal) -> Decimal:
    return exact_context(a, b).add(a, b)


def subtract_amounts(a: Decimal, b: Decimal) -> Decimal:
    return exact_context(a, b).subtract(a, b)


def format_amount(value: Decimal) -> str:
    """Render an amount with exactly 4 decimal places."""
    context = Context(prec=max(value.adjusted() + 6, MIN_PRECISION))
    return f"{value.quantize(DISPLAY_PRECISION, rounding=ROUND_HALF_EVEN, context=context):f}"


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


MONETARY_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"
    DROPPED = "dropped"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if self.is_monetary and self.amount is None:
            raise ValueError(f"{self.transaction_type.value} tx {self.transaction_id} requires an amount")

    @property
    def is_monetary(self) -> bool:
        return self.transaction_type in MONETARY_TYPES

    @classmethod
    def deposit(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.DEPOSIT, client_id, transaction_id, amount)

    @classmethod
    def withdrawal(cls, client_id: int, transaction_id: int, amount: Decimal) -> "Transaction":
        return cls(TransactionType.WITHDRAWAL, client_id, transaction_id, amount)

    @classmethod
    def dispute(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.DISPUTE, client_id, transaction_id)

    @classmethod
    def resolve(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.RESOLVE, client_id, transaction_id)

    @classmethod
    def chargeback(cls, client_id: int, transaction_id: int) -> "Transaction":
        return cls(TransactionType.CHARGEBACK, client_id, transaction_id)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class AccountSnapshot:
    """Final state of one client, amounts already rendered for output."""

    client: int
    available: str
    held: str
    total: str
    locked: bool

    def as_row(self) -> List[str]:
        return [str(self.client), self.available, self.held, self.total, str(self.locked).lower()]


class ProcessingStats:
    """Counters for tracking processing outcomes."""

    def __init__(self):
        self.processed = 0
        self.ignored = 0
        self.dropped = 0
        self.skipped_rows = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.SUCCESS:
            self.processed += 1
        elif result == ProcessingResult.IGNORED:
            self.ignored += 1
        elif result == ProcessingResult.DROPPED:
            self.dropped += 1

    def record_skipped_row(self) -> None:
        self.skipped_rows += 1

    def __str__(self) -> str:
        return (
            f"Processed: {self.processed}, "
            f"Ignored: {self.ignored}, "
            f"Dropped: {self.dropped}, "
            f"Skipped rows: {self.skipped_rows}"
        )
