"""Tests for mapper functions."""

from datetime import datetime, date, UTC
from decimal import Decimal

from bankrec.database.models import (
    Statement as ORMStatement,
    BankTransaction as ORMBankTransaction,
    ReconciliationRule as ORMReconciliationRule,
    LedgerEntry as ORMLedgerEntry,
)
from bankrec.database.mappers import (
    statement_to_domain,
    bank_transaction_to_domain,
    rule_to_domain,
    ledger_entry_to_domain,
)
from bankrec.domain import entities as domain


def test_statement_to_domain():
    """Test converting ORM Statement to domain Statement."""
    imported_at = datetime.now(UTC)
    orm_statement = ORMStatement(
        id=1,
        owner_id="user-1",
        institution_name="Bradesco",
        account_id="56789-0",
        statement_date=date(2024, 1, 31),
        balance=Decimal("3592.10"),
        source_file_name="jan.ofx",
        imported_at=imported_at,
    )

    statement = statement_to_domain(orm_statement)

    assert isinstance(statement, domain.Statement)
    assert statement.id == 1
    assert statement.institution_name == "Bradesco"
    assert statement.balance == Decimal("3592.10")
    assert statement.imported_at == imported_at


def test_bank_transaction_to_domain():
    """Test converting ORM BankTransaction to domain BankTransaction."""
    orm_transaction = ORMBankTransaction(
        id=5,
        statement_id=1,
        owner_id="user-1",
        date=date(2024, 1, 15),
        description="PIX ENVIADO JOAO",
        amount=Decimal("45.00"),
        polarity=domain.Polarity.DEBIT,
        reference_id="FIT1",
        consumed=True,
        posted_ledger_entry_id=9,
    )

    txn = bank_transaction_to_domain(orm_transaction)

    assert isinstance(txn, domain.BankTransaction)
    assert txn.polarity is domain.Polarity.DEBIT
    assert txn.amount == Decimal("45.00")
    assert txn.consumed is True
    assert txn.posted_ledger_entry_id == 9


def test_rule_to_domain():
    """Test converting ORM ReconciliationRule to domain entity."""
    orm_rule = ORMReconciliationRule(
        id=3,
        owner_id="user-1",
        name="Bank Fee",
        match_pattern=None,
        target_description="Bank fee",
        target_category="expense",
        auto_apply=True,
        active=False,
        use_original_description=True,
        created_at=datetime.now(UTC),
    )

    rule = rule_to_domain(orm_rule)

    assert isinstance(rule, domain.ReconciliationRule)
    assert rule.match_pattern == ""
    assert rule.is_catch_all
    assert rule.target_category is domain.LedgerCategory.EXPENSE
    assert rule.active is False


def test_ledger_entry_to_domain():
    """Test converting ORM LedgerEntry to domain LedgerEntry."""
    orm_entry = ORMLedgerEntry(
        id=7,
        owner_id="user-1",
        description="Pix Enviado Joao",
        amount=Decimal("45.00"),
        category=domain.LedgerCategory.EXPENSE,
        month_bucket="2024-01",
        entry_date=date(2024, 2, 1),
        created_at=datetime.now(UTC),
    )

    entry = ledger_entry_to_domain(orm_entry)

    assert isinstance(entry, domain.LedgerEntry)
    assert entry.category is domain.LedgerCategory.EXPENSE
    assert entry.month_bucket == "2024-01"
    assert entry.amount == Decimal("45.00")
