"""Ledger domain service: reports and their rows."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgercheck.database.base import Database
from ledgercheck.domain.codes import parse_code
from ledgercheck.domain.entities import Classification, FlowType, LedgerRow, Report
from ledgercheck.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_report_name,
    report_not_found,
)


class LedgerService:
    """Service for managing reports and ledger rows."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_report(self, name: str, period: Optional[date] = None) -> int:
        """Create a new report.

        Args:
            name: Report name
            period: Optional first day of the reporting period

        Returns:
            Report ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a report with that name exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Report name cannot be empty")
        if self.db.get_report_by_name(name) is not None:
            raise ConflictError(duplicate_report_name(name))
        return self.db.create_report(name=name, period=period)

    def list_reports(self) -> list[Report]:
        """List all reports."""
        return self.db.list_reports()

    def get_report(self, report_id: int) -> Report:
        """Get a report by ID.

        Raises:
            NotFoundError: If report doesn't exist
        """
        report = self.db.get_report(report_id)
        if report is None:
            raise NotFoundError(report_not_found(report_id))
        return report

    def add_row(
        self,
        report_id: int,
        code: str,
        label: str,
        amount: Decimal,
        flow_type: FlowType = FlowType.UNDEFINED,
        classification: Optional[Classification] = None,
    ) -> int:
        """Add a ledger row to a report.

        The code is validated here so malformed codes never reach storage.

        Args:
            report_id: Report ID
            code: Account code (TTTT-DDDD-CCC-FFF)
            label: Account label
            amount: Signed amount
            flow_type: Flow type, Undefined when unclassified
            classification: Optional classification

        Returns:
            Row ID

        Raises:
            MalformedCodeError: If code is malformed
            NotFoundError: If report doesn't exist
        """
        address = parse_code(code)
        self.get_report(report_id)
        return self.db.add_ledger_row(
            report_id=report_id,
            code=address.code,
            label=label,
            amount=amount,
            flow_type=flow_type,
            classification=classification,
        )

    def list_rows(self, report_id: int) -> list[LedgerRow]:
        """List the rows of a report.

        Raises:
            NotFoundError: If report doesn't exist
        """
        self.get_report(report_id)
        return self.db.list_ledger_rows(report_id)
