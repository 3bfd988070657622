"""Domain model entities for bankrec.

These are pure data classes representing business concepts, independent of
database schema. Both storage backends convert their records into these
entities, so the reconciliation logic never sees ORM objects or raw dicts.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from bankrec.domain.errors import ValidationError

# Stripped from rule patterns before matching; patterns are plain substrings
WILDCARD = "%"


class Polarity(str, Enum):
    """Direction of a bank movement."""

    CREDIT = "credit"
    DEBIT = "debit"


class LedgerCategory(str, Enum):
    """Ledger categories a bank movement can be posted under."""

    INCOME = "income"
    EXPENSE = "expense"


def expected_category(polarity: Polarity) -> LedgerCategory:
    """Return the ledger category a bank movement of this polarity must use."""
    if polarity is Polarity.CREDIT:
        return LedgerCategory.INCOME
    return LedgerCategory.EXPENSE


class MatchStatus(str, Enum):
    """Per-transaction reconciliation outcome."""

    ALREADY_CONSUMED = "already_consumed"
    NO_RELEVANT_RULES = "no_relevant_rules"
    NO_RULE = "no_rule"
    CREATION_FAILED = "creation_failed"
    MARK_FAILED = "mark_failed"
    SUCCESS = "success"


@dataclass(frozen=True)
class ParsedTransaction:
    """One transaction block read from a statement file."""

    date: date
    amount: Decimal
    description: str
    polarity: Polarity
    reference_id: Optional[str] = None

    def __post_init__(self):
        if self.amount < 0:
            raise ValidationError(
                f"Parsed amount must be non-negative, got {self.amount}"
            )


@dataclass(frozen=True)
class ParsedStatement:
    """Header metadata and transactions of one statement file."""

    institution_name: str
    account_id: str
    statement_date: date
    balance: Decimal
    transactions: list[ParsedTransaction] = field(default_factory=list)


@dataclass(frozen=True)
class Statement:
    """Imported statement domain entity."""

    id: int
    owner_id: str
    institution_name: str
    account_id: str
    statement_date: date
    balance: Decimal
    source_file_name: str
    imported_at: datetime


@dataclass(frozen=True)
class BankTransaction:
    """Bank transaction domain entity, owned by a statement."""

    id: int
    statement_id: int
    owner_id: str
    date: date
    description: str
    amount: Decimal
    polarity: Polarity
    reference_id: Optional[str] = None
    consumed: bool = False
    posted_ledger_entry_id: Optional[int] = None


@dataclass(frozen=True)
class ReconciliationRule:
    """Pattern-to-category rule used to turn bank transactions into ledger entries."""

    id: int
    owner_id: str
    name: str
    match_pattern: str
    target_description: str
    target_category: LedgerCategory
    auto_apply: bool = True
    active: bool = True
    use_original_description: bool = True
    created_at: Optional[datetime] = None

    @property
    def normalized_pattern(self) -> str:
        """Pattern as compared against descriptions: no wildcards, uppercased."""
        return self.match_pattern.replace(WILDCARD, "").strip().upper()

    @property
    def is_catch_all(self) -> bool:
        return not self.normalized_pattern


@dataclass(frozen=True)
class LedgerEntry:
    """Income or expense record posted to the ledger."""

    id: int
    owner_id: str
    description: str
    amount: Decimal
    category: LedgerCategory
    month_bucket: str
    entry_date: date
    created_at: datetime


@dataclass(frozen=True)
class MatchOutcome:
    """Result of reconciling a single bank transaction."""

    transaction_id: int
    source_description: str
    status: MatchStatus
    polarity: Polarity
    expected_category: LedgerCategory
    matched_rule: Optional[str] = None
    posted_description: Optional[str] = None
    ledger_entry_id: Optional[int] = None
    tested_rules: tuple[str, ...] = ()
    error: Optional[str] = None


@dataclass
class ReconciliationResult:
    """Summary of one reconciliation batch."""

    posted_count: int = 0
    consumed_count: int = 0
    outcomes: list[MatchOutcome] = field(default_factory=list)
    error: Optional[str] = None
    cancelled: bool = False

    @property
    def processed_count(self) -> int:
        return len(self.outcomes)

    def status_counts(self) -> dict[MatchStatus, int]:
        """Return how many outcomes ended in each status."""
        return dict(Counter(outcome.status for outcome in self.outcomes))
