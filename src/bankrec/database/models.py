"""SQLAlchemy models for bankrec database."""

import sqlite3
from datetime import datetime, date, UTC
from decimal import Decimal
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    Enum,
    Index,
    TypeDecorator,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from bankrec.domain.entities import LedgerCategory, Polarity

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ExactDecimal(TypeDecorator):
    """Decimal stored as text so SQLite keeps every digit."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class Statement(Base):
    """Imported bank statement model."""

    __tablename__ = "statements"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    institution_name = Column(String, nullable=False)
    account_id = Column(String, nullable=False)
    statement_date = Column(Date, nullable=False)
    balance = Column(ExactDecimal(), nullable=False)
    source_file_name = Column(String, nullable=False)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship(
        "BankTransaction",
        back_populates="statement",
        cascade="all, delete-orphan",
    )


class BankTransaction(Base):
    """Bank transaction model, owned by a statement."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    statement_id = Column(
        Integer, ForeignKey("statements.id", ondelete="CASCADE"), nullable=False
    )
    owner_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(ExactDecimal(), nullable=False)
    polarity = Column(
        Enum(Polarity, values_callable=_enum_values, name="polarity"), nullable=False
    )
    reference_id = Column(String, nullable=True)
    consumed = Column(Boolean, default=False, nullable=False)
    # Weak reference, no foreign key: the ledger entry is not owned here
    posted_ledger_entry_id = Column(Integer, nullable=True)

    __table_args__ = (Index("ix_bank_transactions_owner_consumed", "owner_id", "consumed"),)

    # Relationships
    statement = relationship("Statement", back_populates="transactions")


class ReconciliationRule(Base):
    """Reconciliation rule model."""

    __tablename__ = "reconciliation_rules"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    match_pattern = Column(String, nullable=False, default="")
    target_description = Column(String, nullable=False)
    target_category = Column(
        Enum(LedgerCategory, values_callable=_enum_values, name="ledger_category"),
        nullable=False,
    )
    auto_apply = Column(Boolean, default=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    use_original_description = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class LedgerEntry(Base):
    """Ledger entry model (income or expense posting)."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(ExactDecimal(), nullable=False)
    category = Column(
        Enum(LedgerCategory, values_callable=_enum_values, name="ledger_category"),
        nullable=False,
    )
    month_bucket = Column(String(7), nullable=False)
    entry_date = Column(Date, default=date.today, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Make SQLite honour ON DELETE CASCADE."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
