"""Reconciliation rule domain service."""

import logging
from typing import Optional

from bankrec.database.base import Database
from bankrec.domain.entities import LedgerCategory, ReconciliationRule
from bankrec.domain.errors import NotFoundError, ValidationError, rule_not_found

logger = logging.getLogger(__name__)

INCOME = LedgerCategory.INCOME
EXPENSE = LedgerCategory.EXPENSE

# (name, match pattern, target description, category)
# Patterns follow the wording Brazilian banks use in OFX memos. An empty
# pattern matches every transaction of its category.
DEFAULT_RULES = [
    # Credits -> income
    ("PIX Received", "PIX RECEBIDO", "PIX received", INCOME),
    ("PIX Credit", "PIX REC", "PIX received", INCOME),
    ("PIX Incoming", "PIX ENTRADA", "PIX received", INCOME),
    ("Deposit", "DEPOSITO", "Deposit", INCOME),
    ("TED Received", "TED RECEBIDO", "TED received", INCOME),
    ("Transfer Received", "TRANSFERENCIA RECEBIDA", "Transfer received", INCOME),
    ("Bank Credit", "CREDITO", "Credit", INCOME),
    ("Salary", "SALARIO", "Salary", INCOME),
    ("Receipt", "RECEBIMENTO", "Receipt", INCOME),
    ("Any Credit", "", "Receipt", INCOME),
    # Debits -> expense
    ("PIX Sent", "PIX ENVIADO", "PIX sent", EXPENSE),
    ("PIX Debit", "PIX DES", "PIX sent", EXPENSE),
    ("ATM Withdrawal", "SAQUE", "Withdrawal", EXPENSE),
    ("Card", "CARTAO", "Credit card", EXPENSE),
    ("Transfer Sent", "TRANSFERENCIA", "Transfer", EXPENSE),
    ("TED Sent", "TED", "TED sent", EXPENSE),
    ("Direct Debit", "DEB AUTOMATICO", "Direct debit", EXPENSE),
    ("Bank Fee", "TARIFA", "Bank fee", EXPENSE),
    ("Payment", "PAGAMENTO", "Payment", EXPENSE),
    ("Debit Purchase", "COMPRA DEBITO", "Debit card purchase", EXPENSE),
    ("Any Debit", "", "Payment", EXPENSE),
]


class RuleService:
    """Service for reading and maintaining reconciliation rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def list_active_rules(self, owner_id: str) -> list[ReconciliationRule]:
        """List the owner's active rules, seeding the defaults for a new owner.

        The default rule set is written once, when the owner has no rule
        records at all.

        Args:
            owner_id: Owner ID

        Returns:
            Active rules ordered by name
        """
        self.ensure_default_rules(owner_id)
        rules = self.db.list_rules(owner_id, active_only=True)
        logger.debug("Loaded %d active rules for owner %s", len(rules), owner_id)
        return rules

    def list_rules(self, owner_id: str) -> list[ReconciliationRule]:
        """List every rule of the owner, active or not."""
        self.ensure_default_rules(owner_id)
        return self.db.list_rules(owner_id)

    def ensure_default_rules(self, owner_id: str) -> int:
        """Create the default rules if the owner has none.

        Returns:
            Number of rules created (0 when the owner already had rules)
        """
        if self.db.count_rules(owner_id) > 0:
            return 0

        for name, pattern, description, category in DEFAULT_RULES:
            self.db.create_rule(
                owner_id=owner_id,
                name=name,
                match_pattern=pattern,
                target_description=description,
                target_category=category,
            )
        logger.info("Created %d default rules for owner %s", len(DEFAULT_RULES), owner_id)
        return len(DEFAULT_RULES)

    def get_rule(self, owner_id: str, rule_id: int) -> Optional[ReconciliationRule]:
        """Get rule by ID."""
        return self.db.get_rule(owner_id, rule_id)

    def create_rule(
        self,
        owner_id: str,
        name: str,
        target_category: LedgerCategory,
        match_pattern: str = "",
        target_description: Optional[str] = None,
        auto_apply: bool = True,
        use_original_description: bool = True,
    ) -> int:
        """Create a rule.

        Args:
            owner_id: Owner ID
            name: Rule name shown in reconciliation results
            target_category: Ledger category of the entries it posts
            match_pattern: Case-insensitive substring; empty matches everything
            target_description: Fixed ledger description, defaults to the name
            auto_apply: Whether reconciliation may apply it automatically
            use_original_description: Post the bank description instead of the
                fixed one

        Returns:
            Rule ID

        Raises:
            ValidationError: If the name is empty or the category unknown
        """
        name = name.strip()
        if not name:
            raise ValidationError("Rule name cannot be empty")
        try:
            category = LedgerCategory(target_category)
        except ValueError as e:
            raise ValidationError(f"Unknown ledger category '{target_category}'") from e

        # New rules must not trigger the default seed later
        self.ensure_default_rules(owner_id)
        return self.db.create_rule(
            owner_id=owner_id,
            name=name,
            match_pattern=match_pattern.strip(),
            target_description=(target_description or name).strip(),
            target_category=category,
            auto_apply=auto_apply,
            use_original_description=use_original_description,
        )

    def set_active(self, owner_id: str, rule_id: int, active: bool) -> None:
        """Enable or disable a rule.

        Raises:
            NotFoundError: If the rule doesn't exist
        """
        if self.db.get_rule(owner_id, rule_id) is None:
            raise NotFoundError(rule_not_found(rule_id))
        self.db.update_rule_active(owner_id, rule_id, active)

    def delete_rule(self, owner_id: str, rule_id: int) -> None:
        """Delete a rule.

        Raises:
            NotFoundError: If the rule doesn't exist
        """
        if self.db.get_rule(owner_id, rule_id) is None:
            raise NotFoundError(rule_not_found(rule_id))
        self.db.delete_rule(owner_id, rule_id)
