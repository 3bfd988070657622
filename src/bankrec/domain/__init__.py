"""Domain layer for bankrec application."""

# Services are imported lazily: the database layer imports domain entities,
# and the services import the database layer.
_SERVICES = {
    "StatementParser": "bankrec.domain.statement_parser",
    "StatementImportService": "bankrec.domain.statement_import",
    "RuleService": "bankrec.domain.rules",
    "ReconciliationService": "bankrec.domain.reconciliation",
    "DatabaseLedger": "bankrec.domain.ledger",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
