"""Tests for StatementImportService."""

import pytest
from datetime import date
from decimal import Decimal

from bankrec.domain.entities import ParsedTransaction, Polarity
from bankrec.domain.errors import FormatError, NotFoundError, PersistenceError
from bankrec.domain.rules import RuleService
from bankrec.domain.statement_import import StatementImportService


def test_import_statement(import_service, owner, parsed_statement):
    """Test storing a parsed statement."""
    statement, transactions = import_service.import_statement(owner, parsed_statement, "jan.ofx")

    assert statement.source_file_name == "jan.ofx"
    assert statement.owner_id == owner
    assert len(transactions) == 2
    assert {t.polarity for t in transactions} == {Polarity.CREDIT, Polarity.DEBIT}
    assert all(t.statement_id == statement.id for t in transactions)


def test_import_file(import_service, owner, fixtures_dir):
    """Test importing the sample OFX file."""
    statement, transactions = import_service.import_file(
        owner, str(fixtures_dir / "sample_statement.ofx")
    )

    assert statement.institution_name == "Bradesco"
    assert statement.account_id == "56789-0"
    assert statement.source_file_name == "sample_statement.ofx"
    assert statement.balance == Decimal("3592.10")
    assert len(transactions) == 4
    assert import_service.list_statements(owner) == [statement]


def test_import_missing_file(import_service, owner, tmp_path):
    with pytest.raises(NotFoundError):
        import_service.import_file(owner, str(tmp_path / "missing.ofx"))


def test_import_invalid_file(import_service, memory_db, owner, fixtures_dir):
    """Test that a non-OFX file is rejected and nothing is stored."""
    with pytest.raises(FormatError, match="not_a_statement.txt"):
        import_service.import_file(owner, str(fixtures_dir / "not_a_statement.txt"))

    assert memory_db.list_statements(owner) == []


def test_import_latin1_file(import_service, owner, tmp_path):
    """Test that exports in Latin-1 are decoded."""
    content = (
        "OFXHEADER:100\nCHARSET:1252\n\n<OFX><STMTRS>\n<ACCTID>1\n<BANKTRANLIST>\n"
        "<STMTTRN>\n<DTPOSTED>20240110\n<TRNAMT>-8,00\n<MEMO>CAFÉ PÃO\n</STMTTRN>\n"
        "</BANKTRANLIST></STMTRS></OFX>\n"
    )
    path = tmp_path / "latin1.ofx"
    path.write_bytes(content.encode("latin-1"))

    _, transactions = import_service.import_file(owner, str(path))

    assert transactions[0].description == "CAFÉ PÃO"
    assert transactions[0].amount == Decimal("8.00")


def test_import_is_atomic(temp_db, owner, statement_factory):
    """Test a failing transaction leaves no statement behind."""
    broken = statement_factory(
        [
            ParsedTransaction(
                date=date(2024, 1, 10),
                amount=Decimal("1.00"),
                description=None,
                polarity=Polarity.DEBIT,
            )
        ]
    )
    service = StatementImportService(temp_db)

    with pytest.raises(PersistenceError):
        service.import_statement(owner, broken, "broken.ofx")

    assert service.list_statements(owner) == []
    assert temp_db.list_bank_transactions(owner) == []


def test_list_transactions(import_service, owner, parsed_statement):
    first, _ = import_service.import_statement(owner, parsed_statement, "jan.ofx")
    import_service.import_statement(owner, parsed_statement, "feb.ofx")

    assert len(import_service.list_transactions(owner)) == 4
    assert len(import_service.list_transactions(owner, statement_id=first.id)) == 2


def test_list_transactions_unknown_statement(import_service, owner):
    with pytest.raises(NotFoundError, match="Statement 999 not found"):
        import_service.list_transactions(owner, statement_id=999)


def test_list_unconsumed(import_service, memory_db, owner, parsed_statement):
    _, transactions = import_service.import_statement(owner, parsed_statement, "jan.ofx")
    memory_db.mark_transaction_consumed(owner, transactions[0].id, 1)

    pending = import_service.list_unconsumed(owner)
    assert [t.id for t in pending] == [transactions[1].id]

    assert import_service.list_unconsumed(owner, start_date=date(2024, 1, 10)) == []
    assert len(import_service.list_unconsumed(owner, end_date=date(2024, 1, 10))) == 1


def test_delete_statement(import_service, owner, parsed_statement):
    """Test deleting a statement removes its transactions."""
    statement, _ = import_service.import_statement(owner, parsed_statement, "jan.ofx")

    import_service.delete_statement(owner, statement.id)

    assert import_service.get_statement(owner, statement.id) is None
    assert import_service.list_transactions(owner) == []


def test_delete_missing_statement(import_service, owner):
    with pytest.raises(NotFoundError):
        import_service.delete_statement(owner, 999)


def test_reset_keeps_rules(import_service, memory_db, owner, parsed_statement):
    """Test reset removes statements but leaves reconciliation rules."""
    rules = RuleService(memory_db)
    rules.ensure_default_rules(owner)
    rule_count = memory_db.count_rules(owner)
    import_service.import_statement(owner, parsed_statement, "jan.ofx")
    import_service.import_statement(owner, parsed_statement, "feb.ofx")

    assert import_service.reset_all(owner) == 2

    assert import_service.list_statements(owner) == []
    assert import_service.list_transactions(owner) == []
    assert memory_db.count_rules(owner) == rule_count
