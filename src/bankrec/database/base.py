"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from bankrec.domain.entities import (
    BankTransaction,
    LedgerCategory,
    LedgerEntry,
    ParsedStatement,
    ReconciliationRule,
    Statement,
)


class Database(ABC):
    """Abstract database interface for bankrec.

    Every operation is scoped by owner id. Implementations raise
    PersistenceError when the underlying store fails.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Statement operations
    @abstractmethod
    def create_statement(
        self, owner_id: str, parsed: ParsedStatement, source_file_name: str
    ) -> int:
        """Store a statement together with all of its transactions.

        The statement and its transactions are written as one unit: either all
        of them exist afterwards or none do. Returns statement ID.
        """
        pass

    @abstractmethod
    def get_statement(self, owner_id: str, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        pass

    @abstractmethod
    def list_statements(self, owner_id: str) -> list[Statement]:
        """List statements, newest import first."""
        pass

    @abstractmethod
    def delete_statement(self, owner_id: str, statement_id: int) -> bool:
        """Delete a statement and its transactions. Returns False if not found."""
        pass

    @abstractmethod
    def delete_all_statements(self, owner_id: str) -> int:
        """Delete every statement and transaction of an owner. Returns statement count."""
        pass

    # Bank transaction operations
    @abstractmethod
    def get_bank_transaction(self, owner_id: str, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self,
        owner_id: str,
        statement_id: Optional[int] = None,
        consumed: Optional[bool] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankTransaction]:
        """List bank transactions, newest first.

        Args:
            owner_id: Owner whose transactions to list
            statement_id: Optional statement filter
            consumed: If given, only transactions with this consumed flag
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
        """
        pass

    @abstractmethod
    def mark_transaction_consumed(
        self, owner_id: str, transaction_id: int, ledger_entry_id: int
    ) -> bool:
        """Flag a bank transaction as consumed by a ledger entry.

        Only succeeds while the transaction is still unconsumed. Returns False
        when it does not exist or was already consumed.
        """
        pass

    # Reconciliation rule operations
    @abstractmethod
    def create_rule(
        self,
        owner_id: str,
        name: str,
        match_pattern: str,
        target_description: str,
        target_category: LedgerCategory,
        auto_apply: bool = True,
        active: bool = True,
        use_original_description: bool = True,
    ) -> int:
        """Create a reconciliation rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, owner_id: str, rule_id: int) -> Optional[ReconciliationRule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, owner_id: str, active_only: bool = False) -> list[ReconciliationRule]:
        """List rules ordered by name."""
        pass

    @abstractmethod
    def count_rules(self, owner_id: str) -> int:
        """Count every rule record of an owner, active or not."""
        pass

    @abstractmethod
    def update_rule_active(self, owner_id: str, rule_id: int, active: bool) -> None:
        """Enable or disable a rule."""
        pass

    @abstractmethod
    def delete_rule(self, owner_id: str, rule_id: int) -> None:
        """Delete a rule."""
        pass

    # Ledger operations
    @abstractmethod
    def create_ledger_entry(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: LedgerCategory,
        month_bucket: str,
    ) -> int:
        """Create a ledger entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_ledger_entry(self, owner_id: str, entry_id: int) -> Optional[LedgerEntry]:
        """Get ledger entry by ID."""
        pass

    @abstractmethod
    def list_ledger_entries(
        self, owner_id: str, month_bucket: Optional[str] = None
    ) -> list[LedgerEntry]:
        """List ledger entries, optionally for a single month."""
        pass
