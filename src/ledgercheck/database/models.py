"""SQLAlchemy models for ledgercheck database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Report(Base):
    """One reporting period's ledger."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    period = Column(Date, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    rows = relationship("LedgerRow", back_populates="report", cascade="all, delete-orphan")


class LedgerRow(Base):
    """Ledger row model with its current classification."""

    __tablename__ = "ledger_rows"

    id = Column(Integer, primary_key=True)
    report_id = Column(Integer, ForeignKey("reports.id"), nullable=False)
    code = Column(String(17), nullable=False)
    label = Column(String, nullable=False, default="")
    amount = Column(Numeric(18, 2), nullable=False)
    flow_type = Column(String, nullable=False, default="Undefined")
    category = Column(String, nullable=True)
    subcategory = Column(String, nullable=True)
    detail_class = Column(String, nullable=True)

    __table_args__ = (Index("ix_ledger_rows_code", "code"),)

    # Relationships
    report = relationship("Report", back_populates="rows")


class ClassificationRule(Base):
    """Classification catalogue entry for one account code."""

    __tablename__ = "classification_rules"

    id = Column(Integer, primary_key=True)
    account_code = Column(String(17), nullable=False)
    flow_type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    subcategory = Column(String, nullable=False, default="")
    detail_class = Column(String, nullable=False)
    effective_from = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String, nullable=False, default="system")

    __table_args__ = (Index("ix_classification_rules_code", "account_code"),)


class AuditEntry(Base):
    """Audit log of committed bulk classification changes."""

    __tablename__ = "audit_entries"

    id = Column(Integer, primary_key=True)
    account_code = Column(String(17), nullable=False)
    affected_records = Column(Integer, nullable=False)
    affected_reports = Column(Integer, nullable=False)
    financial_impact = Column(Numeric(18, 2), nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
