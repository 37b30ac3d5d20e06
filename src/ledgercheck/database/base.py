"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgercheck.domain.entities import (
    AuditEntry,
    Classification,
    ClassificationRule,
    FlowType,
    LedgerRow,
    Report,
)


class Database(ABC):
    """Abstract database interface for ledgercheck."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Report operations
    @abstractmethod
    def create_report(self, name: str, period: Optional[date] = None) -> int:
        """Create a new report. Returns report ID."""
        pass

    @abstractmethod
    def get_report(self, report_id: int) -> Optional[Report]:
        """Get report by ID."""
        pass

    @abstractmethod
    def get_report_by_name(self, name: str) -> Optional[Report]:
        """Get report by name."""
        pass

    @abstractmethod
    def list_reports(self) -> list[Report]:
        """List all reports, oldest first."""
        pass

    # Ledger row operations
    @abstractmethod
    def add_ledger_row(
        self,
        report_id: int,
        code: str,
        label: str,
        amount: Decimal,
        flow_type: FlowType = FlowType.UNDEFINED,
        classification: Optional[Classification] = None,
    ) -> int:
        """Add a row to a report. Returns row ID."""
        pass

    @abstractmethod
    def list_ledger_rows(self, report_id: int) -> list[LedgerRow]:
        """List the rows of one report ordered by code."""
        pass

    @abstractmethod
    def list_rows_by_code(self, code: str) -> list[LedgerRow]:
        """List every historical row carrying an account code, oldest report first."""
        pass

    @abstractmethod
    def count_rows_by_code(self) -> dict[str, int]:
        """Count rows per account code across all reports."""
        pass

    @abstractmethod
    def commit_reclassification(
        self,
        account_code: str,
        flow_type: FlowType,
        classification: Classification,
        effective_from: datetime,
        row_ids: Iterable[int],
        affected_reports: int,
        financial_impact: Decimal,
        created_by: str = "system",
    ) -> int:
        """Replace the rule, update the rows and write the audit entry in one transaction.

        Returns audit entry ID. Raises ConflictError, writing nothing, when a
        planned row no longer exists.
        """
        pass

    # Classification rule operations
    @abstractmethod
    def list_rules(self, active_only: bool = True) -> list[ClassificationRule]:
        """List classification rules ordered by account code."""
        pass

    @abstractmethod
    def get_active_rule(self, account_code: str) -> Optional[ClassificationRule]:
        """Get the latest active rule for an account code."""
        pass

    @abstractmethod
    def upsert_rule(
        self,
        account_code: str,
        flow_type: FlowType,
        classification: Classification,
        effective_from: datetime,
        created_by: str = "system",
    ) -> int:
        """Add a rule for an account code, superseding the ones it replaces. Returns rule ID."""
        pass

    @abstractmethod
    def deactivate_rule(self, account_code: str) -> None:
        """Deactivate every active rule for an account code."""
        pass

    # Audit operations
    @abstractmethod
    def list_audit_entries(self, account_code: Optional[str] = None) -> list[AuditEntry]:
        """List audit entries, newest first, optionally for one account code."""
        pass
