"""Bank reconciliation domain service.

Turns bank transactions into ledger entries. For every unconsumed transaction
the service picks the most specific active auto-apply rule whose category
matches the transaction's polarity, posts a ledger entry for it and marks the
transaction consumed so it can never be posted twice.

Per-transaction problems (no rule, ledger refused the entry, ...) are reported
as MatchOutcome records rather than raised.
"""

import logging
import re
import threading
from dataclasses import replace
from typing import Iterable, Optional

from bankrec.database.base import Database
from bankrec.domain.entities import (
    BankTransaction,
    LedgerCategory,
    MatchOutcome,
    MatchStatus,
    ReconciliationResult,
    ReconciliationRule,
    expected_category,
)
from bankrec.domain.errors import PersistenceError, no_relevant_rules_for_batch
from bankrec.domain.ledger import DatabaseLedger, LedgerPort
from bankrec.domain.rules import RuleService
from bankrec.utils.date_parser import month_bucket

logger = logging.getLogger(__name__)

MAX_POSTED_DESCRIPTION_LENGTH = 200
SOURCE_DESCRIPTION_LENGTH = 50

_WHITESPACE = re.compile(r"\s+")
_WORD_START = re.compile(r"\b\w")


def format_original_description(description: str) -> str:
    """Tidy a raw bank description for use as a ledger description.

    Collapses whitespace, lowercases, capitalizes the first letter after
    every word boundary and caps the length:
    "PIX  ENVIADO/JOAO" -> "Pix Enviado/Joao".
    """
    collapsed = _WHITESPACE.sub(" ", description).strip().lower()
    titled = _WORD_START.sub(lambda match: match.group().upper(), collapsed)
    return titled[:MAX_POSTED_DESCRIPTION_LENGTH]


def relevant_rules(
    rules: Iterable[ReconciliationRule], category: LedgerCategory
) -> list[ReconciliationRule]:
    """Rules that may be applied automatically to a movement of ``category``."""
    return [
        rule
        for rule in rules
        if rule.active and rule.auto_apply and rule.target_category == category
    ]


def rank_rules(rules: Iterable[ReconciliationRule]) -> list[ReconciliationRule]:
    """Order rules by specificity.

    Rules with a pattern come before catch-alls, longer patterns before
    shorter ones. Equal ranks keep their incoming order.
    """
    return sorted(rules, key=lambda rule: (rule.is_catch_all, -len(rule.normalized_pattern)))


def find_matching_rule(
    description: str, ranked_rules: Iterable[ReconciliationRule]
) -> Optional[ReconciliationRule]:
    """Return the first rule whose pattern occurs in the description.

    Catch-all rules match any description. Comparison is case-insensitive.
    """
    upper_description = description.upper()
    for rule in ranked_rules:
        pattern = rule.normalized_pattern
        if not pattern or pattern in upper_description:
            return rule
    return None


def posted_description(transaction: BankTransaction, rule: ReconciliationRule) -> str:
    """Description of the ledger entry a rule posts for a transaction."""
    if rule.use_original_description:
        return format_original_description(transaction.description)
    return rule.target_description


class ReconciliationService:
    """Service for reconciling bank transactions against rules."""

    def __init__(
        self,
        db: Database,
        ledger: Optional[LedgerPort] = None,
        rule_service: Optional[RuleService] = None,
    ):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            ledger: Ledger to post entries to, defaults to the database ledger
            rule_service: Rule store, defaults to one over ``db``
        """
        self.db = db
        self.ledger = ledger or DatabaseLedger(db)
        self.rule_service = rule_service or RuleService(db)

    def reconcile(
        self,
        owner_id: str,
        bank_transactions: list[BankTransaction],
        cancel_event: Optional[threading.Event] = None,
    ) -> ReconciliationResult:
        """Reconcile a batch of bank transactions.

        Transactions are processed in list order. When ``cancel_event`` is set
        the batch stops before the next transaction and the result is flagged
        as cancelled; work already done is kept.

        Args:
            owner_id: Owner ID
            bank_transactions: Transactions to reconcile
            cancel_event: Optional event used to stop the batch early

        Returns:
            ReconciliationResult with one outcome per processed transaction

        Raises:
            PersistenceError: If the rules cannot be read
        """
        result = ReconciliationResult()
        rules = self.rule_service.list_active_rules(owner_id)
        bank_transactions = [self._current(owner_id, txn) for txn in bank_transactions]

        batch_error = self._check_rule_coverage(bank_transactions, rules)
        if batch_error is not None:
            logger.error("Reconciliation aborted for owner %s: %s", owner_id, batch_error)
            result.error = batch_error
            return result

        for transaction in bank_transactions:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Reconciliation cancelled after %d transactions", result.processed_count)
                result.cancelled = True
                break

            outcome, rule = self.evaluate(transaction, rules)
            if rule is not None:
                outcome = self._apply(owner_id, transaction, rule, outcome, result)
            result.outcomes.append(outcome)

        logger.info(
            "Reconciled %d of %d transactions for owner %s (%d posted)",
            result.consumed_count,
            result.processed_count,
            owner_id,
            result.posted_count,
        )
        return result

    def reconcile_selected(
        self,
        owner_id: str,
        transaction_ids: Iterable[int],
        all_transactions: list[BankTransaction],
        cancel_event: Optional[threading.Event] = None,
    ) -> ReconciliationResult:
        """Reconcile only the transactions whose IDs were selected."""
        selected_ids = set(transaction_ids)
        selected = [txn for txn in all_transactions if txn.id in selected_ids]
        logger.debug("Reconciling %d selected transactions", len(selected))
        return self.reconcile(owner_id, selected, cancel_event=cancel_event)

    def reconcile_pending(
        self, owner_id: str, cancel_event: Optional[threading.Event] = None
    ) -> ReconciliationResult:
        """Reconcile every unconsumed bank transaction of the owner."""
        pending = self.db.list_bank_transactions(owner_id, consumed=False)
        return self.reconcile(owner_id, pending, cancel_event=cancel_event)

    def preview(
        self, owner_id: str, bank_transactions: list[BankTransaction]
    ) -> list[MatchOutcome]:
        """Show which rule each transaction would use, without posting anything.

        Outcomes for transactions that would be posted carry the SUCCESS status.
        """
        rules = self.rule_service.list_active_rules(owner_id)
        return [self.evaluate(txn, rules)[0] for txn in bank_transactions]

    def evaluate(
        self, transaction: BankTransaction, rules: list[ReconciliationRule]
    ) -> tuple[MatchOutcome, Optional[ReconciliationRule]]:
        """Pick the rule for one transaction.

        Returns:
            The outcome so far and the selected rule, or None when the
            transaction cannot be posted
        """
        expected = expected_category(transaction.polarity)
        outcome = MatchOutcome(
            transaction_id=transaction.id,
            source_description=transaction.description[:SOURCE_DESCRIPTION_LENGTH],
            status=MatchStatus.SUCCESS,
            polarity=transaction.polarity,
            expected_category=expected,
        )

        if transaction.consumed:
            logger.debug("Transaction %s already consumed", transaction.id)
            return replace(outcome, status=MatchStatus.ALREADY_CONSUMED), None

        relevant = relevant_rules(rules, expected)
        if not relevant:
            return (
                replace(
                    outcome,
                    status=MatchStatus.NO_RELEVANT_RULES,
                    error=(
                        f"No active auto-apply {expected.value} rule for a "
                        f"{transaction.polarity.value} transaction"
                    ),
                ),
                None,
            )

        ranked = rank_rules(relevant)
        rule = find_matching_rule(transaction.description, ranked)
        if rule is None:
            logger.debug(
                "No rule matched transaction %s (%r)", transaction.id, transaction.description
            )
            return (
                replace(
                    outcome,
                    status=MatchStatus.NO_RULE,
                    tested_rules=tuple(r.name for r in ranked),
                ),
                None,
            )

        logger.debug("Transaction %s matched rule %r", transaction.id, rule.name)
        return (
            replace(
                outcome,
                matched_rule=rule.name,
                posted_description=posted_description(transaction, rule),
            ),
            rule,
        )

    def _apply(
        self,
        owner_id: str,
        transaction: BankTransaction,
        rule: ReconciliationRule,
        outcome: MatchOutcome,
        result: ReconciliationResult,
    ) -> MatchOutcome:
        """Post the ledger entry and consume the transaction."""
        try:
            entry = self.ledger.post_entry(
                owner_id=owner_id,
                description=outcome.posted_description,
                amount=transaction.amount,
                category=rule.target_category,
                month_bucket=month_bucket(transaction.date),
            )
        except PersistenceError as e:
            logger.error("Ledger failed for transaction %s: %s", transaction.id, e)
            entry = None
            failure = str(e)
        else:
            failure = "Ledger did not create the entry"

        if entry is None:
            return replace(
                outcome,
                status=MatchStatus.CREATION_FAILED,
                error=(
                    f"{failure} (rule '{rule.name}', category {rule.target_category.value}, "
                    f"expected {outcome.expected_category.value})"
                ),
            )

        result.posted_count += 1
        outcome = replace(outcome, ledger_entry_id=entry.id)

        try:
            marked = self.db.mark_transaction_consumed(owner_id, transaction.id, entry.id)
            failure = f"Transaction {transaction.id} was missing or already consumed"
        except PersistenceError as e:
            marked = False
            failure = str(e)

        if not marked:
            # The ledger entry stays; it is reported so the user can remove it
            logger.error(
                "Ledger entry %s posted but transaction %s not marked: %s",
                entry.id,
                transaction.id,
                failure,
            )
            return replace(outcome, status=MatchStatus.MARK_FAILED, error=failure)

        result.consumed_count += 1
        return outcome

    def _current(self, owner_id: str, transaction: BankTransaction) -> BankTransaction:
        """Stored state of a transaction; the caller's copy may be stale."""
        stored = self.db.get_bank_transaction(owner_id, transaction.id)
        return stored if stored is not None else transaction

    def _check_rule_coverage(
        self, bank_transactions: list[BankTransaction], rules: list[ReconciliationRule]
    ) -> Optional[str]:
        """Return an error when no pending transaction could ever find a rule."""
        needed = {
            expected_category(txn.polarity) for txn in bank_transactions if not txn.consumed
        }
        if not needed:
            return None
        if any(relevant_rules(rules, category) for category in needed):
            return None
        return no_relevant_rules_for_batch(sorted(category.value for category in needed))
