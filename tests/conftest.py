"""Shared pytest fixtures for bankrec tests."""

import logging
import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from bankrec.database.factories import create_memory_database, create_sqlite_database
from bankrec.domain.entities import ParsedStatement, ParsedTransaction, Polarity
from bankrec.domain.reconciliation import ReconciliationService
from bankrec.domain.rules import RuleService
from bankrec.domain.statement_import import StatementImportService
from bankrec.domain.statement_parser import StatementParser

OWNER = "user-1"


@pytest.fixture
def owner():
    """Owner ID used by most tests."""
    return OWNER


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def memory_db():
    """Create an empty in-memory database."""
    return create_memory_database()


@pytest.fixture(params=["sqlite", "memory"])
def any_db(request):
    """Run a test against both database backends."""
    return request.getfixturevalue("temp_db" if request.param == "sqlite" else "memory_db")


@pytest.fixture
def parser():
    """Create a StatementParser."""
    return StatementParser()


@pytest.fixture
def rule_service(memory_db):
    """Create a RuleService with an in-memory database."""
    return RuleService(memory_db)


@pytest.fixture
def reconciliation_service(memory_db):
    """Create a ReconciliationService with an in-memory database."""
    return ReconciliationService(memory_db)


@pytest.fixture
def import_service(memory_db):
    """Create a StatementImportService with an in-memory database."""
    return StatementImportService(memory_db)


def make_parsed_statement(transactions=None, account_id="12345-6"):
    """Build a ParsedStatement with sensible defaults."""
    if transactions is None:
        transactions = [
            ParsedTransaction(
                date=date(2024, 1, 15),
                amount=Decimal("45.00"),
                description="PIX ENVIADO JOAO",
                polarity=Polarity.DEBIT,
                reference_id="FIT1",
            ),
            ParsedTransaction(
                date=date(2024, 1, 5),
                amount=Decimal("3500.00"),
                description="SALARIO EMPRESA XYZ",
                polarity=Polarity.CREDIT,
                reference_id="FIT2",
            ),
        ]
    return ParsedStatement(
        institution_name="Bradesco",
        account_id=account_id,
        statement_date=date(2024, 1, 31),
        balance=Decimal("3455.00"),
        transactions=transactions,
    )


@pytest.fixture
def parsed_statement():
    """A parsed statement with one debit and one credit."""
    return make_parsed_statement()


@pytest.fixture
def statement_factory():
    """Build parsed statements with custom transactions."""
    return make_parsed_statement


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo the root handlers installed by setup_logging."""
    root = logging.getLogger()
    level, handlers = root.level, root.handlers[:]
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
