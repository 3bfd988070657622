"""Ledger collaborator used by reconciliation."""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from bankrec.database.base import Database
from bankrec.domain.entities import LedgerCategory, LedgerEntry
from bankrec.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


class LedgerPort(ABC):
    """Posts income and expense entries to the ledger."""

    @abstractmethod
    def post_entry(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: LedgerCategory,
        month_bucket: str,
    ) -> Optional[LedgerEntry]:
        """Post one entry. Returns None when the ledger refused or failed."""
        pass


class DatabaseLedger(LedgerPort):
    """Ledger that writes entries to the bankrec database."""

    def __init__(self, db: Database):
        self.db = db

    def post_entry(
        self,
        owner_id: str,
        description: str,
        amount: Decimal,
        category: LedgerCategory,
        month_bucket: str,
    ) -> Optional[LedgerEntry]:
        try:
            entry_id = self.db.create_ledger_entry(
                owner_id=owner_id,
                description=description,
                amount=amount,
                category=category,
                month_bucket=month_bucket,
            )
            return self.db.get_ledger_entry(owner_id, entry_id)
        except PersistenceError as e:
            logger.error("Could not post ledger entry %r: %s", description, e)
            return None
