"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the reconciliation code only ever
handles the frozen domain entities.
"""

from decimal import Decimal

from bankrec.domain import entities as domain
from bankrec.database.models import (
    Statement as ORMStatement,
    BankTransaction as ORMBankTransaction,
    ReconciliationRule as ORMReconciliationRule,
    LedgerEntry as ORMLedgerEntry,
)


def statement_to_domain(orm_statement: ORMStatement) -> domain.Statement:
    """Convert SQLAlchemy Statement model to domain Statement entity."""
    return domain.Statement(
        id=orm_statement.id,
        owner_id=orm_statement.owner_id,
        institution_name=orm_statement.institution_name,
        account_id=orm_statement.account_id,
        statement_date=orm_statement.statement_date,
        balance=Decimal(orm_statement.balance),
        source_file_name=orm_statement.source_file_name,
        imported_at=orm_statement.imported_at,
    )


def bank_transaction_to_domain(orm_transaction: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity."""
    return domain.BankTransaction(
        id=orm_transaction.id,
        statement_id=orm_transaction.statement_id,
        owner_id=orm_transaction.owner_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        amount=Decimal(orm_transaction.amount),
        polarity=domain.Polarity(orm_transaction.polarity),
        reference_id=orm_transaction.reference_id,
        consumed=bool(orm_transaction.consumed),
        posted_ledger_entry_id=orm_transaction.posted_ledger_entry_id,
    )


def rule_to_domain(orm_rule: ORMReconciliationRule) -> domain.ReconciliationRule:
    """Convert SQLAlchemy ReconciliationRule model to domain entity."""
    return domain.ReconciliationRule(
        id=orm_rule.id,
        owner_id=orm_rule.owner_id,
        name=orm_rule.name,
        match_pattern=orm_rule.match_pattern or "",
        target_description=orm_rule.target_description,
        target_category=domain.LedgerCategory(orm_rule.target_category),
        auto_apply=bool(orm_rule.auto_apply),
        active=bool(orm_rule.active),
        use_original_description=bool(orm_rule.use_original_description),
        created_at=orm_rule.created_at,
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    return domain.LedgerEntry(
        id=orm_entry.id,
        owner_id=orm_entry.owner_id,
        description=orm_entry.description,
        amount=Decimal(orm_entry.amount),
        category=domain.LedgerCategory(orm_entry.category),
        month_bucket=orm_entry.month_bucket,
        entry_date=orm_entry.entry_date,
        created_at=orm_entry.created_at,
    )
