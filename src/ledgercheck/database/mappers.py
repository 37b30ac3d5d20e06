"""Mapper functions to convert between domain models and SQLAlchemy models.

Classification columns are flattened on the ORM side; the domain keeps them
together in a Classification value.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from ledgercheck.domain import entities as domain
from ledgercheck.database.models import (
    AuditEntry as ORMAuditEntry,
    ClassificationRule as ORMClassificationRule,
    LedgerRow as ORMLedgerRow,
    Report as ORMReport,
)


def classification_from_columns(
    category: Optional[str], subcategory: Optional[str], detail_class: Optional[str]
) -> Optional[domain.Classification]:
    """Build a Classification from flattened columns, None if all are empty."""
    if not category and not subcategory and not detail_class:
        return None
    return domain.Classification(
        category=category or "",
        subcategory=subcategory or "",
        detail_class=detail_class or "",
    )


def as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def report_to_domain(orm_report: ORMReport) -> domain.Report:
    """Convert SQLAlchemy Report model to domain Report entity."""
    return domain.Report(
        id=orm_report.id,
        name=orm_report.name,
        period=orm_report.period,
        created_at=orm_report.created_at,
    )


def ledger_row_to_domain(orm_row: ORMLedgerRow) -> domain.LedgerRow:
    """Convert SQLAlchemy LedgerRow model to domain LedgerRow entity."""
    return domain.LedgerRow(
        id=orm_row.id,
        report_id=orm_row.report_id,
        code=orm_row.code,
        label=orm_row.label,
        amount=Decimal(orm_row.amount),
        flow_type=domain.FlowType(orm_row.flow_type),
        classification=classification_from_columns(
            orm_row.category, orm_row.subcategory, orm_row.detail_class
        ),
    )


def classification_rule_to_domain(
    orm_rule: ORMClassificationRule,
) -> domain.ClassificationRule:
    """Convert SQLAlchemy ClassificationRule model to domain entity."""
    return domain.ClassificationRule(
        id=orm_rule.id,
        account_code=orm_rule.account_code,
        flow_type=domain.FlowType(orm_rule.flow_type),
        classification=domain.Classification(
            category=orm_rule.category,
            subcategory=orm_rule.subcategory,
            detail_class=orm_rule.detail_class,
        ),
        effective_from=as_utc(orm_rule.effective_from),
        is_active=orm_rule.is_active,
        created_by=orm_rule.created_by,
    )


def audit_entry_to_domain(orm_entry: ORMAuditEntry) -> domain.AuditEntry:
    """Convert SQLAlchemy AuditEntry model to domain AuditEntry entity."""
    return domain.AuditEntry(
        id=orm_entry.id,
        account_code=orm_entry.account_code,
        affected_records=orm_entry.affected_records,
        affected_reports=orm_entry.affected_reports,
        financial_impact=Decimal(orm_entry.financial_impact),
        created_by=orm_entry.created_by,
        created_at=orm_entry.created_at,
    )
