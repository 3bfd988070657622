"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class FormatError(DomainError):
    """Statement document cannot be parsed."""


class PersistenceError(DomainError):
    """A storage read or write failed."""


def statement_not_found(statement_id: int) -> str:
    """Return message for missing statement."""
    return f"Statement {statement_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing reconciliation rule."""
    return f"Rule {rule_id} not found"


def invalid_statement_format(source: str) -> str:
    """Return message for a document without statement markers."""
    return (
        f"'{source}' is not a valid OFX statement: "
        "no OFX header or transaction list found"
    )


def no_relevant_rules_for_batch(categories: list[str]) -> str:
    """Return message when no active auto-apply rule covers the batch."""
    return (
        "No active auto-apply rules found for "
        f"{' or '.join(categories)}; check your reconciliation rules"
    )
