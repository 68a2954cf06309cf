"""
HeckeGate Transaction Model

A transaction is captured once by the caller and handed to the gate as a
read-only input. Its lifecycle word records the order in which processing
steps (generators) were observed.

Generators are small positive integers. The supported alphabet is 1..7 and
a lifecycle word holds at most 10 generators; anything else is rejected at
the boundary with InvalidWord rather than silently reduced.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from .errors import InvalidWord, UnknownTransactionClass


MAX_GENERATOR = 7
MAX_WORD_LENGTH = 10

LifecycleWord = Tuple[int, ...]


class TransactionClass(str, Enum):
    """Transaction classes, one signature registry each."""
    PAYMENT = "payment"
    INVOICE = "invoice"

    @classmethod
    def parse(cls, value: Any) -> "TransactionClass":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnknownTransactionClass(value)


def validate_word(
    word: Iterable[Any],
    max_generator: int = MAX_GENERATOR,
    max_length: int = MAX_WORD_LENGTH
) -> LifecycleWord:
    """
    Check a lifecycle word and return it as an immutable tuple.

    Raises:
        InvalidWord: if the word is not a sequence, is longer than
            max_length, or holds a generator that is not an integer in
            1..max_generator
    """
    if isinstance(word, (str, bytes)) or not hasattr(word, "__iter__"):
        raise InvalidWord(f"Lifecycle word must be a sequence of integers, got {type(word).__name__}")

    generators = tuple(word)

    if len(generators) > max_length:
        raise InvalidWord(
            f"Lifecycle word has {len(generators)} generators, maximum is {max_length}",
            generators
        )

    for position, g in enumerate(generators):
        # bool is an int subclass
        if isinstance(g, bool) or not isinstance(g, int):
            raise InvalidWord(f"Generator at position {position} is not an integer: {g!r}", generators)
        if g < 1:
            raise InvalidWord(f"Generator at position {position} is not positive: {g}", generators)
        if g > max_generator:
            raise InvalidWord(
                f"Generator at position {position} is outside the alphabet 1..{max_generator}: {g}",
                generators
            )

    return generators


def format_word(word: Iterable[int]) -> str:
    """Render a word the way proof certificates show it, e.g. "1-2-3"."""
    return "-".join(str(g) for g in word)


@dataclass(frozen=True)
class Transaction:
    """
    A transaction submitted for verification.

    Fields:
    - id: caller-assigned transaction identifier
    - transaction_class: payment or invoice
    - amount, currency, counterparty: business attributes, not used by the
      decision but carried into alerts
    - lifecycle_word: observed processing steps, in order
    - purpose: free-text payment purpose
    """
    id: str
    transaction_class: TransactionClass
    amount: float
    currency: str
    counterparty: str
    lifecycle_word: LifecycleWord
    purpose: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Transaction id must not be empty")
        object.__setattr__(self, "transaction_class", TransactionClass.parse(self.transaction_class))
        object.__setattr__(self, "lifecycle_word", validate_word(self.lifecycle_word))

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "type": self.transaction_class.value,
            "amount": self.amount,
            "currency": self.currency,
            "counterparty": self.counterparty,
            "lifecycleWord": list(self.lifecycle_word),
        }
        if self.purpose:
            d["purpose"] = self.purpose
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Create a Transaction from the request shape used by the gateway."""
        required = ["id", "type", "amount", "currency", "counterparty", "lifecycleWord"]
        missing = [f for f in required if f not in data]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")

        return cls(
            id=data["id"],
            transaction_class=data["type"],
            amount=data["amount"],
            currency=data["currency"],
            counterparty=data["counterparty"],
            lifecycle_word=data["lifecycleWord"],
            purpose=data.get("purpose"),
        )


def create_transaction(
    transaction_id: str,
    transaction_class: str,
    lifecycle_word: Iterable[int],
    amount: float = 0.0,
    currency: str = "EUR",
    counterparty: str = "",
    purpose: Optional[str] = None
) -> Transaction:
    """Convenience constructor with defaults for the business attributes."""
    return Transaction(
        id=transaction_id,
        transaction_class=transaction_class,
        amount=amount,
        currency=currency,
        counterparty=counterparty,
        lifecycle_word=tuple(lifecycle_word),
        purpose=purpose,
    )
