"""Classification rule catalogue."""

import logging
from dataclasses import replace
from datetime import datetime, UTC
from typing import Iterable, Optional

from ledgercheck.database.base import Database
from ledgercheck.domain.codes import parse_code
from ledgercheck.domain.entities import (
    Classification,
    ClassificationRule,
    FlowType,
    LedgerRow,
)
from ledgercheck.domain.errors import NotFoundError, ValidationError, rule_not_found
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.domain.status import is_classified

logger = logging.getLogger(__name__)


class RuleCatalogue:
    """Point-in-time view of the classification rules."""

    def __init__(self, rules: Iterable[ClassificationRule], as_of: Optional[datetime] = None):
        """Index the rules visible at a moment.

        Args:
            rules: Classification rules (any state)
            as_of: Moment to look at; rules taking effect later are ignored (default: now)
        """
        self.as_of = as_of or datetime.now(UTC)
        self._rules: dict[str, ClassificationRule] = {}
        for rule in rules:
            if not rule.is_active or rule.effective_from > self.as_of:
                continue
            current = self._rules.get(rule.account_code)
            if current is None or rule.effective_from >= current.effective_from:
                self._rules[rule.account_code] = rule

    def __len__(self) -> int:
        return len(self._rules)

    def lookup(self, code: str) -> Optional[ClassificationRule]:
        return self._rules.get(code.strip())

    def apply_to(
        self, rows: Iterable[LedgerRow], settings: ValidationSettings = DEFAULT_SETTINGS
    ) -> list[LedgerRow]:
        """Fill in the classification of rows that have none from the catalogue.

        Rows that are already classified keep their own classification.
        """
        result = []
        filled = 0
        for row in rows:
            rule = self.lookup(row.code)
            if rule is not None and not is_classified(row.flow_type, row.classification, settings):
                row = replace(row, flow_type=rule.flow_type, classification=rule.classification)
                filled += 1
            result.append(row)
        if filled:
            logger.debug("Classified %d rows from the rule catalogue", filled)
        return result


class ClassificationRuleService:
    """Service for managing classification rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def set_rule(
        self,
        code: str,
        flow_type: FlowType,
        classification: Classification,
        effective_from: Optional[datetime] = None,
        created_by: str = "system",
    ) -> int:
        """Create or replace the rule for an account code.

        Rules taking effect at or before effective_from are superseded. A
        rule scheduled for the future leaves the current one in effect
        until its date.

        Args:
            code: Account code
            flow_type: Income or Expense
            classification: Classification to apply
            effective_from: When the rule takes effect (default: now)
            created_by: Who set the rule

        Returns:
            Rule ID

        Raises:
            MalformedCodeError: If code is malformed
            ValidationError: If the rule would leave the account unclassified
        """
        address = parse_code(code)
        if not is_classified(flow_type, classification):
            raise ValidationError(
                "A classification rule needs a flow type, a category and a detail classification"
            )

        rule_id = self.db.upsert_rule(
            account_code=address.code,
            flow_type=flow_type,
            classification=classification,
            effective_from=effective_from or datetime.now(UTC),
            created_by=created_by,
        )
        logger.info("Set classification rule for %s", address.code)
        return rule_id

    def get_rule(
        self, code: str, as_of: Optional[datetime] = None
    ) -> Optional[ClassificationRule]:
        """Get the rule in effect for an account code at a moment (default: now), or None."""
        return self.catalogue(as_of).lookup(parse_code(code).code)

    def deactivate_rule(self, code: str) -> None:
        """Deactivate the rules for an account code, scheduled ones included.

        Raises:
            NotFoundError: If the code has no active rule
        """
        address = parse_code(code)
        if self.db.get_active_rule(address.code) is None:
            raise NotFoundError(rule_not_found(address.code))
        self.db.deactivate_rule(address.code)

    def list_rules(self, active_only: bool = True) -> list[ClassificationRule]:
        """List classification rules."""
        return self.db.list_rules(active_only=active_only)

    def rule_usage(self) -> dict[str, int]:
        """Return how many ledger rows carry each active rule's code."""
        counts = self.db.count_rows_by_code()
        return {rule.account_code: counts.get(rule.account_code, 0) for rule in self.list_rules()}

    def catalogue(self, as_of: Optional[datetime] = None) -> RuleCatalogue:
        """Return the catalogue as it stands at a moment (default: now)."""
        return RuleCatalogue(self.db.list_rules(active_only=True), as_of)
