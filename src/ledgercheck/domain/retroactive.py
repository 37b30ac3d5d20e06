"""Retroactive reclassification: impact planning and committing."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from ledgercheck.database.base import Database
from ledgercheck.domain.codes import family_key_of, parse_code
from ledgercheck.domain.entities import (
    AuditEntry,
    Classification,
    ClassificationHistoryEntry,
    FlowType,
    LedgerRow,
    RetroactiveChange,
    RetroactiveImpact,
)
from ledgercheck.domain.errors import ValidationError
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.utils.date_parser import parse_effective_from

logger = logging.getLogger(__name__)


def plan_retroactive_change(
    code: str,
    flow_type: FlowType,
    classification: Classification,
    history_rows: Iterable[LedgerRow],
) -> RetroactiveImpact:
    """Compute what applying a classification to a code's history would touch.

    Nothing is written. Rows carrying other codes are ignored, so callers may
    pass a whole history.

    Args:
        code: Account code being reclassified
        flow_type: New flow type
        classification: New classification
        history_rows: Historical rows (any reports)

    Returns:
        RetroactiveImpact; zero records when the code has no history

    Raises:
        MalformedCodeError: If code is malformed
        ValidationError: If the new classification has no flow type
    """
    address = parse_code(code)
    if flow_type == FlowType.UNDEFINED:
        raise ValidationError("A retroactive classification needs an Income or Expense flow type")

    changes = []
    report_ids: list[int] = []
    for row in history_rows:
        if row.code.strip() != address.code:
            continue
        changes.append(
            RetroactiveChange(
                row_id=row.id,
                report_id=row.report_id,
                account_code=address.code,
                amount=row.amount,
                old_flow_type=row.flow_type,
                old_classification=row.classification,
            )
        )
        if row.report_id is not None and row.report_id not in report_ids:
            report_ids.append(row.report_id)

    return RetroactiveImpact(
        account_code=address.code,
        family_key=family_key_of(address),
        new_flow_type=flow_type,
        new_classification=classification,
        affected_records=len(changes),
        affected_reports=tuple(report_ids),
        total_financial_impact=sum((abs(c.amount) for c in changes), Decimal("0")),
        changes=tuple(changes),
    )


class RetroactiveService:
    """Service for applying classifications to historical reports."""

    def __init__(self, db: Database, settings: ValidationSettings = DEFAULT_SETTINGS):
        """Initialize retroactive service.

        Args:
            db: Database instance
            settings: Thresholds for logging significant changes
        """
        self.db = db
        self.settings = settings

    def analyze(
        self, code: str, flow_type: FlowType, classification: Classification
    ) -> RetroactiveImpact:
        """Plan a retroactive change against the stored history of a code."""
        address = parse_code(code)
        history = self.db.list_rows_by_code(address.code)
        impact = plan_retroactive_change(address.code, flow_type, classification, history)
        logger.debug(
            "Planned reclassification of %s: %d records in %d reports",
            address.code,
            impact.affected_records,
            len(impact.affected_reports),
        )
        return impact

    def commit(
        self,
        impact: RetroactiveImpact,
        created_by: str = "system",
        effective_from: Optional[datetime] = None,
    ) -> AuditEntry:
        """Apply a planned change.

        The catalogue rule is replaced, every affected row is updated and an
        audit entry records the aggregate impact, all in one transaction.

        Args:
            impact: Plan returned by analyze
            created_by: Who made the change
            effective_from: When the new rule takes effect (default: now)

        Returns:
            The audit entry written for the change

        Raises:
            ConflictError: If the ledger changed since the plan was made
        """
        if effective_from is None:
            effective_from = parse_effective_from(None)

        entry_id = self.db.commit_reclassification(
            account_code=impact.account_code,
            flow_type=impact.new_flow_type,
            classification=impact.new_classification,
            effective_from=effective_from,
            row_ids=impact.row_ids,
            affected_reports=len(impact.affected_reports),
            financial_impact=impact.total_financial_impact,
            created_by=created_by,
        )

        if (
            impact.affected_records > self.settings.significant_change_records
            or impact.total_financial_impact > self.settings.significant_change_amount
        ):
            logger.info(
                "Significant retroactive change to %s by %s: %d records in %d reports, impact %s",
                impact.account_code,
                created_by,
                impact.affected_records,
                len(impact.affected_reports),
                impact.total_financial_impact,
            )

        entries = self.db.list_audit_entries(impact.account_code)
        return next(entry for entry in entries if entry.id == entry_id)

    def history(self, code: str) -> list[ClassificationHistoryEntry]:
        """Return how an account code was classified in each report."""
        address = parse_code(code)
        names = {report.id: report.name for report in self.db.list_reports()}
        return [
            ClassificationHistoryEntry(
                report_id=row.report_id,
                report_name=names.get(row.report_id, ""),
                amount=row.amount,
                flow_type=row.flow_type,
                classification=row.classification,
            )
            for row in self.db.list_rows_by_code(address.code)
        ]
