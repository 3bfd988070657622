"""In-memory implementation of the Database interface.

Used for tests and throwaway sessions: everything lives in plain
dicts for the lifetime of the process. Records are kept as frozen domain
entities and replaced wholesale on update.
"""

import itertools
from dataclasses import replace
from datetime import datetime, date, UTC
from decimal import Decimal
from typing import Optional

from bankrec.database.base import Database
from bankrec.domain.entities import (
    BankTransaction,
    LedgerCategory,
    LedgerEntry,
    ParsedStatement,
    ReconciliationRule,
    Statement,
)
from bankrec.domain.errors import NotFoundError, rule_not_found


class InMemoryDatabase(Database):
    """Process-local Database implementation."""

    def __init__(self):
        self._statements: dict[int, Statement] = {}
        self._transactions: dict[int, BankTransaction] = {}
        self._rules: dict[int, ReconciliationRule] = {}
        self._ledger: dict[int, LedgerEntry] = {}
        self._ids = itertools.count(1)

    def _next_id(self) -> int:
        return next(self._ids)

    def connect(self) -> None:
        """Connect to the database."""
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Statement operations
    def create_statement(
        self, owner_id: str, parsed: ParsedStatement, source_file_name: str
    ) -> int:
        """Store a statement and its transactions.

        All records are built before anything is stored, so a failure while
        building leaves the store untouched.
        """
        statement_id = self._next_id()
        statement = Statement(
            id=statement_id,
            owner_id=owner_id,
            institution_name=parsed.institution_name,
            account_id=parsed.account_id,
            statement_date=parsed.statement_date,
            balance=parsed.balance,
            source_file_name=source_file_name,
            imported_at=datetime.now(UTC),
        )
        transactions = [
            BankTransaction(
                id=self._next_id(),
                statement_id=statement_id,
                owner_id=owner_id,
                date=txn.date,
                description=txn.description,
                amount=txn.amount,
                polarity=txn.polarity,
                reference_id=txn.reference_id,
            )
            for txn in parsed.transactions
        ]

        self._statements[statement_id] = statement
        self._transactions.update((txn.id, txn) for txn in transactions)
        return statement_id

    def get_statement(self, owner_id: str, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        statement = self._statements.get(statement_id)
        if statement is None or statement.owner_id != owner_id:
            return None
        return statement

    def list_statements(self, owner_id: str) -> list[Statement]:
        """List statements, newest import first."""
        statements = [s for s in self._statements.values() if s.owner_id == owner_id]
        return sorted(statements, key=lambda s: (s.imported_at, s.id), reverse=True)

    def delete_statement(self, owner_id: str, statement_id: int) -> bool:
        """Delete a statement and its transactions."""
        if self.get_statement(owner_id, statement_id) is None:
            return False
        del self._statements[statement_id]
        self._transactions = {
            txn_id: txn
            for txn_id, txn in self._transactions.items()
            if txn.statement_id != statement_id
        }
        return True

    def delete_all_statements(self, owner_id: str) -> int:
        """Delete every statement and bank transaction of an owner."""
        statement_ids = [s.id for s in self._statements.values() if s.owner_id == owner_id]
        for statement_id in statement_ids:
            del self._statements[statement_id]
        self._transactions = {
            txn_id: txn
            for txn_id, txn in self._transactions.items()
            if txn.owner_id != owner_id
        }
        return len(statement_ids)

    # Bank transaction operations
    def get_bank_transaction(self, owner_id: str, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        txn = self._transactions.get(transaction_id)
        if txn is None or txn.owner_id != owner_id:
            return None
        return txn

    def list_bank_transactions(
        self,
        owner_id: str,
        statement_id: Optional[int] = None,
        consumed: Optional[bool] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankTransaction]:
        """List bank transactions with optional filters, newest first."""
        transactions = []
        for txn in self._transactions.values():
            if txn.owner_id != owner_id:
                continue
            if statement_id is not None and txn.statement_id != statement_id:
                continue
            if consumed is not None and txn.consumed != consumed:
                continue
            if start_date is not None and txn.date < start_date:
                continue
            if end_date is not None and txn.date > end_date:
                continue
            transactions.append(txn)
        # Newest date first, import order within a day
        transactions.sort(key=lambda t: t.id)
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    def mark_transaction_consumed(
        self, owner_id: str, transaction_id: int, ledger_entry_id: int
    ) -> bool:
        """Flag a transaction as consumed, only if it still is unconsumed."""
        txn = self.get_bank_transaction(owner_id, transaction_id)
        if txn is None or txn.consumed:
            return False
        self._transactions[transaction_id] = replace(
            txn, consumed=True, posted_ledger_entry_id=ledger_entry_id
        )
        return True

    # Reconciliation rule operations
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
        rule_id = self._next_id()
        self._rules[rule_id] = ReconciliationRule(
            id=rule_id,
            owner_id=owner_id,
            name=name,
            match_pattern=match_pattern,
            target_description=target_description,
            target_category=LedgerCategory(target_category),
            auto_apply=auto_apply,
            active=active,
            use_original_description=use_original_description,
            created_at=datetime.now(UTC),
        )
        return rule_id

    def get_rule(self, owner_id: str, rule_id: int) -> Optional[ReconciliationRule]:
        """Get rule by ID."""
        rule = self._rules.get(rule_id)
        if rule is None or rule.owner_id != owner_id:
            return None
        return rule

    def list_rules(self, owner_id: str, active_only: bool = False) -> list[ReconciliationRule]:
        """List rules ordered by name."""
        rules = [
            r
            for r in self._rules.values()
            if r.owner_id == owner_id and (r.active or not active_only)
        ]
        return sorted(rules, key=lambda r: (r.name, r.id))

    def count_rules(self, owner_id: str) -> int:
        """Count every rule record of an owner."""
        return sum(1 for r in self._rules.values() if r.owner_id == owner_id)

    def update_rule_active(self, owner_id: str, rule_id: int, active: bool) -> None:
        """Enable or disable a rule."""
        rule = self.get_rule(owner_id, rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        self._rules[rule_id] = replace(rule, active=active)

    def delete_rule(self, owner_id: str, rule_id: int) -> None:
        """Delete a rule."""
        if self.get_rule(owner_id, rule_id) is None:
            raise NotFoundError(rule_not_found(rule_id))
        del self._rules[rule_id]

    # Ledger operations
    def create_ledger_entry(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: LedgerCategory,
        month_bucket: str,
    ) -> int:
        """Create a ledger entry. Returns entry ID."""
        entry_id = self._next_id()
        self._ledger[entry_id] = LedgerEntry(
            id=entry_id,
            owner_id=owner_id,
            description=description,
            amount=amount,
            category=LedgerCategory(category),
            month_bucket=month_bucket,
            entry_date=date.today(),
            created_at=datetime.now(UTC),
        )
        return entry_id

    def get_ledger_entry(self, owner_id: str, entry_id: int) -> Optional[LedgerEntry]:
        """Get ledger entry by ID."""
        entry = self._ledger.get(entry_id)
        if entry is None or entry.owner_id != owner_id:
            return None
        return entry

    def list_ledger_entries(
        self, owner_id: str, month_bucket: Optional[str] = None
    ) -> list[LedgerEntry]:
        """List ledger entries, optionally for a single month."""
        return [
            e
            for e in sorted(self._ledger.values(), key=lambda e: e.id)
            if e.owner_id == owner_id and (month_bucket is None or e.month_bucket == month_bucket)
        ]
