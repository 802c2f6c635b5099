"""Free-text expense parsing.

Turns chat text such as ``Coffee 5.50`` or ``12 Lunch`` into structured
expenses. A line may put the amount first or last, and several amounts on
one line are summed (``Coffee 5 10 15`` is 30). Multi-line messages are
parsed one expense per non-blank line.

Everything here is pure: no I/O, no logging, no configuration.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .exceptions import NoValidExpensesError

# Plain ASCII decimal only: optional sign, digits with an optional fraction.
# No thousands separators, exponents, inf/nan or underscores.
NUMBER_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")
ISO_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

DEFAULT_SOURCE = "bot"


class RejectionReason(str, Enum):
    """Why a single line could not be turned into an expense"""

    TOO_FEW_TOKENS = "TooFewTokens"
    NO_AMOUNT_FOUND = "NoAmountFound"
    MISSING_DESCRIPTION = "MissingDescription"

    @property
    def message(self):
        return _REASON_MESSAGES[self]


_REASON_MESSAGES = {
    RejectionReason.TOO_FEW_TOKENS: "invalid format - need description and amount",
    RejectionReason.NO_AMOUNT_FOUND: "no valid amount found",
    RejectionReason.MISSING_DESCRIPTION: "missing description",
}


@dataclass(frozen=True)
class ParsedExpense:
    amount: float
    description: str

    def __post_init__(self):
        if not self.amount > 0:
            raise ValueError("amount must be positive")
        if not self.description.strip():
            raise ValueError("description cannot be empty")


@dataclass(frozen=True)
class CallerContext:
    """Fields the caller attaches to every parsed line"""

    date: str
    user_name: str
    channel_id: str
    source: str = DEFAULT_SOURCE

    def __post_init__(self):
        if not isinstance(self.date, str) or not ISO_DATE_PATTERN.fullmatch(self.date):
            raise ValueError(f"date must be YYYY-MM-DD, got {self.date!r}")
        try:
            datetime.strptime(self.date, "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"date must be YYYY-MM-DD, got {self.date!r}") from None
        if not str(self.channel_id).strip():
            raise ValueError("telegram chat ID cannot be empty")
        if not self.source.strip():
            raise ValueError("source cannot be empty")


@dataclass(frozen=True)
class ExpenseRecord:
    description: str
    amount: float
    date: str
    source: str
    user_name: str
    channel_id: str

    @classmethod
    def build(cls, parsed, context):
        return cls(
            description=parsed.description,
            amount=parsed.amount,
            date=context.date,
            source=context.source,
            user_name=context.user_name,
            channel_id=str(context.channel_id),
        )

    def to_dict(self):
        """Payload shape expected by /api/expenses/create-batch-from-bot"""
        return {
            "description": self.description,
            "amount": self.amount,
            "date": self.date,
            "source": self.source,
            "userName": self.user_name,
            "telegramChatId": self.channel_id,
        }


@dataclass(frozen=True)
class LineFailure:
    line_number: int
    text: str
    reason: RejectionReason


@dataclass(frozen=True)
class BatchResult:
    records: tuple = field(default_factory=tuple)
    failures: tuple = field(default_factory=tuple)

    @property
    def total_amount(self):
        return sum(r.amount for r in self.records)


def parse_amount(token):
    """Return the token's value if it is a positive decimal number, else None"""
    if not NUMBER_PATTERN.fullmatch(token):
        return None
    value = float(token)
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def contains_number(text):
    """True when any token looks like a number, whatever its sign"""
    return any(NUMBER_PATTERN.fullmatch(token) for token in text.split())


def interpret(line):
    """Parse one line into a ParsedExpense, or return a RejectionReason.

    Tokens that parse as positive numbers are summed into the amount; all
    other tokens, including "0" and "-5", form the description in their
    original order. Never raises.
    """
    tokens = line.split()
    # a single token is reported by what it lacks, below
    if not tokens:
        return RejectionReason.TOO_FEW_TOKENS

    amounts = []
    words = []
    for token in tokens:
        value = parse_amount(token)
        if value is None:
            words.append(token)
        else:
            amounts.append(value)

    if not amounts:
        return RejectionReason.NO_AMOUNT_FOUND
    if not words:
        return RejectionReason.MISSING_DESCRIPTION

    # a line that gets here has at least one amount and one word
    total = 0.0
    for value in amounts:
        total += value
    return ParsedExpense(amount=total, description=" ".join(words))


def aggregate(text, context):
    """Parse a multi-line message into a BatchResult.

    Blank lines are skipped and not counted, so line numbers are positions
    among the non-blank lines. Raises NoValidExpensesError (carrying the
    per-line failures) when no line produced an expense.
    """
    records = []
    failures = []
    line_number = 0
    for raw in text.splitlines():
        if not raw.strip():
            continue
        line_number += 1
        result = interpret(raw)
        if isinstance(result, RejectionReason):
            failures.append(LineFailure(line_number, raw, result))
        else:
            records.append(ExpenseRecord.build(result, context))

    if not records:
        raise NoValidExpensesError(failures)
    return BatchResult(records=tuple(records), failures=tuple(failures))
