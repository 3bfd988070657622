"""Statement import and lifecycle domain service."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from bankrec.database.base import Database
from bankrec.domain.entities import BankTransaction, ParsedStatement, Statement
from bankrec.domain.errors import NotFoundError, PersistenceError, statement_not_found
from bankrec.domain.statement_parser import StatementParser

logger = logging.getLogger(__name__)


class StatementImportService:
    """Service for importing, listing and deleting bank statements."""

    def __init__(self, db: Database, parser: Optional[StatementParser] = None):
        """Initialize statement import service.

        Args:
            db: Database instance
            parser: Statement parser, a default one when omitted
        """
        self.db = db
        self.parser = parser or StatementParser()

    def import_statement(
        self, owner_id: str, parsed_statement: ParsedStatement, source_file_name: str
    ) -> tuple[Statement, list[BankTransaction]]:
        """Store a parsed statement with all its transactions.

        The statement and its transactions are written in one unit, so a
        failure never leaves a statement without its transactions.

        Args:
            owner_id: Owner ID
            parsed_statement: Parser output
            source_file_name: Name of the imported file

        Returns:
            Tuple of (statement, bank transactions)

        Raises:
            PersistenceError: If the statement could not be stored
        """
        statement_id = self.db.create_statement(
            owner_id=owner_id, parsed=parsed_statement, source_file_name=source_file_name
        )
        statement = self.db.get_statement(owner_id, statement_id)
        if statement is None:
            raise PersistenceError(
                f"Statement {statement_id} was not found right after being stored"
            )
        transactions = self.db.list_bank_transactions(owner_id, statement_id=statement_id)
        logger.info(
            "Imported statement %s from %s with %d transactions",
            statement_id,
            source_file_name,
            len(transactions),
        )
        return statement, transactions

    def import_file(
        self, owner_id: str, file_path: str
    ) -> tuple[Statement, list[BankTransaction]]:
        """Parse an OFX file and import it.

        Args:
            owner_id: Owner ID
            file_path: Path to the OFX file

        Returns:
            Tuple of (statement, bank transactions)

        Raises:
            NotFoundError: If the file doesn't exist
            FormatError: If the file is not an OFX statement
            PersistenceError: If the statement could not be stored
        """
        path = Path(file_path)
        if not path.is_file():
            raise NotFoundError(f"Statement file not found: {file_path}")

        raw_text = self._read_text(path)
        parsed = self.parser.parse(raw_text, source=path.name)
        return self.import_statement(owner_id, parsed, source_file_name=path.name)

    def _read_text(self, path: Path) -> str:
        data = path.read_bytes()
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.debug("%s is not UTF-8, reading it as Latin-1", path.name)
            return data.decode("latin-1")

    def get_statement(self, owner_id: str, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        return self.db.get_statement(owner_id, statement_id)

    def list_statements(self, owner_id: str) -> list[Statement]:
        """List statements, newest import first."""
        return self.db.list_statements(owner_id)

    def list_transactions(
        self, owner_id: str, statement_id: Optional[int] = None
    ) -> list[BankTransaction]:
        """List bank transactions, optionally of one statement.

        Raises:
            NotFoundError: If the statement doesn't exist
        """
        if statement_id is not None and self.db.get_statement(owner_id, statement_id) is None:
            raise NotFoundError(statement_not_found(statement_id))
        return self.db.list_bank_transactions(owner_id, statement_id=statement_id)

    def list_unconsumed(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankTransaction]:
        """List bank transactions not yet turned into ledger entries."""
        return self.db.list_bank_transactions(
            owner_id, consumed=False, start_date=start_date, end_date=end_date
        )

    def delete_statement(self, owner_id: str, statement_id: int) -> None:
        """Delete a statement and all of its transactions.

        Raises:
            NotFoundError: If the statement doesn't exist
        """
        if not self.db.delete_statement(owner_id, statement_id):
            raise NotFoundError(statement_not_found(statement_id))
        logger.info("Deleted statement %s for owner %s", statement_id, owner_id)

    def reset_all(self, owner_id: str) -> int:
        """Delete every statement and bank transaction of the owner.

        Reconciliation rules are kept.

        Returns:
            Number of statements deleted
        """
        count = self.db.delete_all_statements(owner_id)
        logger.info("Reset %d statements for owner %s", count, owner_id)
        return count
