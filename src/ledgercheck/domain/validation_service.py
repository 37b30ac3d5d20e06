"""Report-level validation service."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ledgercheck.database.base import Database
from ledgercheck.domain.entities import (
    FamilyValidationResult,
    LedgerRow,
    Recommendation,
    ReconciliationResult,
    Report,
)
from ledgercheck.domain.errors import NotFoundError, report_not_found
from ledgercheck.domain.families import group_families
from ledgercheck.domain.reconciliation import reconcile_rows
from ledgercheck.domain.recommendation import recommend_approach
from ledgercheck.domain.rules import RuleCatalogue
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.domain.validation import HierarchyValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportFindings:
    """Everything the engine reports for one ledger snapshot."""

    report: Report
    families: tuple[FamilyValidationResult, ...]
    reconciliation: tuple[ReconciliationResult, ...]

    @property
    def issue_count(self) -> int:
        return sum(len(f.issues) for f in self.families)


class LedgerValidationService:
    """Service running the validation engine over stored reports."""

    def __init__(self, db: Database, settings: ValidationSettings = DEFAULT_SETTINGS):
        """Initialize validation service.

        Args:
            db: Database instance
            settings: Validation settings
        """
        self.db = db
        self.settings = settings
        self.validator = HierarchyValidator(settings)

    def resolve_report(self, report: int | str) -> Report:
        """Find a report by ID or name.

        Raises:
            NotFoundError: If no such report exists
        """
        found: Optional[Report] = None
        if isinstance(report, int) or str(report).isdigit():
            found = self.db.get_report(int(report))
        if found is None:
            found = self.db.get_report_by_name(str(report))
        if found is None:
            raise NotFoundError(report_not_found(report))
        return found

    def load_rows(self, report: int | str, as_of: Optional[datetime] = None) -> list[LedgerRow]:
        """Load a report's rows with unclassified rows filled from the rule catalogue."""
        found = self.resolve_report(report)
        catalogue = RuleCatalogue(self.db.list_rules(active_only=True), as_of)
        return catalogue.apply_to(self.db.list_ledger_rows(found.id), self.settings)

    def validate(self, report: int | str) -> list[FamilyValidationResult]:
        """Run the hierarchy validator over a report."""
        return self.validator.validate_rows(self.load_rows(report))

    def reconcile(self, report: int | str) -> list[ReconciliationResult]:
        """Reconcile stated parent amounts against their children."""
        return reconcile_rows(self.load_rows(report), self.settings)

    def recommend(self, report: int | str) -> dict[str, tuple[str, Recommendation]]:
        """Recommend an approach for every family in a report.

        Returns:
            Dict mapping family key to (family name, recommendation)
        """
        families = group_families(self.load_rows(report), self.settings)
        return {
            key: (family.name, recommend_approach(family, self.settings))
            for key, family in families.items()
        }

    def run(self, report: int | str) -> ReportFindings:
        """Validate and reconcile a report in one pass."""
        found = self.resolve_report(report)
        rows = self.load_rows(found.id)
        findings = ReportFindings(
            report=found,
            families=tuple(self.validator.validate_rows(rows)),
            reconciliation=tuple(reconcile_rows(rows, self.settings)),
        )
        logger.info(
            "Report %s: %d issues in %d families, %d reconciliation variances",
            found.name,
            findings.issue_count,
            len(findings.families),
            len(findings.reconciliation),
        )
        return findings
