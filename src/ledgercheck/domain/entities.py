"""Domain model entities for ledgercheck.

These are pure data classes representing ledger and classification concepts,
independent of database schema. The validation engine only ever sees these
types, so it stays testable without a database.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class FlowType(str, Enum):
    """Direction of money for a ledger row."""

    INCOME = "Income"
    EXPENSE = "Expense"
    UNDEFINED = "Undefined"


class ClassificationStatus(str, Enum):
    """Classification state of one account."""

    CLASSIFIED = "CLASSIFIED"
    UNCLASSIFIED = "UNCLASSIFIED"
    IMPLICITLY_CLASSIFIED = "IMPLICITLY_CLASSIFIED"


class IssueType(str, Enum):
    """Kinds of hierarchy consistency problems."""

    MIXED_LEVEL4_SIBLINGS = "MIXED_LEVEL4_SIBLINGS"
    MIXED_LEVEL3_SIBLINGS = "MIXED_LEVEL3_SIBLINGS"
    OVER_CLASSIFICATION = "OVER_CLASSIFICATION"


class Severity(str, Enum):
    """Issue severity, lowest to highest."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ApproachType(str, Enum):
    """Level at which a family should be classified."""

    DETAIL_CLASSIFICATION = "DETAIL_CLASSIFICATION"
    SUMMARY_CLASSIFICATION = "SUMMARY_CLASSIFICATION"
    HIGH_LEVEL_CLASSIFICATION = "HIGH_LEVEL_CLASSIFICATION"


class VarianceStatus(str, Enum):
    """Outcome of comparing a stated parent amount with its children."""

    PERFECT = "PERFECT"
    MINOR_VARIANCE = "MINOR_VARIANCE"
    MAJOR_VARIANCE = "MAJOR_VARIANCE"
    CRITICAL_MISMATCH = "CRITICAL_MISMATCH"


@dataclass(frozen=True)
class AccountAddress:
    """Parsed TTTT-DDDD-CCC-FFF account code."""

    type: str
    division: str
    category: str
    detail: str

    @property
    def code(self) -> str:
        return f"{self.type}-{self.division}-{self.category}-{self.detail}"

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class Classification:
    """Business classification attached to a row or rule."""

    category: str
    subcategory: str
    detail_class: str


@dataclass(frozen=True)
class LedgerRow:
    """One line of a ledger, as produced by the ingestion layer."""

    code: str
    label: str
    amount: Decimal
    flow_type: FlowType = FlowType.UNDEFINED
    classification: Optional[Classification] = None
    report_id: Optional[int] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class ClassificationRule:
    """Catalogue entry mapping an account code to a classification."""

    account_code: str
    flow_type: FlowType
    classification: Classification
    effective_from: datetime
    is_active: bool = True
    created_by: str = "system"
    id: Optional[int] = None


@dataclass(frozen=True)
class Report:
    """A reporting period's ledger."""

    id: int
    name: str
    period: Optional[date]
    created_at: datetime


@dataclass(frozen=True)
class AuditEntry:
    """Record of a committed bulk classification change."""

    id: int
    account_code: str
    affected_records: int
    affected_reports: int
    financial_impact: Decimal
    created_by: str
    created_at: datetime


@dataclass(frozen=True)
class AccountInfo:
    """A ledger row enriched with its hierarchy position and status."""

    code: str
    label: str
    amount: Decimal
    level: int
    family_key: str
    parent_code: Optional[str]
    status: ClassificationStatus
    flow_type: FlowType = FlowType.UNDEFINED
    classification: Optional[Classification] = None

    @property
    def is_classified(self) -> bool:
        return self.status == ClassificationStatus.CLASSIFIED


@dataclass(frozen=True)
class Family:
    """All accounts sharing the same type+division prefix."""

    family_key: str
    name: str
    total_amount: Decimal
    accounts_by_level: dict[int, tuple[AccountInfo, ...]]

    def accounts(self, level: int) -> tuple[AccountInfo, ...]:
        return self.accounts_by_level.get(level, ())

    def all_accounts(self) -> tuple[AccountInfo, ...]:
        return tuple(acc for level in (1, 2, 3, 4) for acc in self.accounts(level))

    def find(self, code: str) -> Optional[AccountInfo]:
        for acc in self.all_accounts():
            if acc.code == code:
                return acc
        return None


@dataclass(frozen=True)
class Issue:
    """A classification inconsistency found by the validator."""

    id: str
    type: IssueType
    severity: Severity
    financial_impact: Decimal
    parent_code: str
    parent_account: Optional[AccountInfo]
    classified_children: tuple[AccountInfo, ...]
    unclassified_children: tuple[AccountInfo, ...]
    error_message: str
    business_impact: str
    resolution_steps: tuple[str, ...]
    auto_fixable: bool
    priority_rank: int
    completeness_percentage: Optional[float] = None
    missing_percentage: Optional[float] = None

    @property
    def affected_accounts(self) -> tuple[str, ...]:
        codes = [self.parent_code]
        codes.extend(acc.code for acc in self.classified_children)
        codes.extend(acc.code for acc in self.unclassified_children)
        return tuple(codes)


@dataclass(frozen=True)
class Recommendation:
    """Suggested classification approach for a family."""

    approach: ApproachType
    current_completeness: float
    reasoning: str
    specific_actions: tuple[str, ...]
    business_benefits: tuple[str, ...] = ()


@dataclass(frozen=True)
class FamilyValidationResult:
    """Issues found in one family plus the recommended approach."""

    family_key: str
    family_name: str
    total_amount: Decimal
    issues: tuple[Issue, ...]
    financial_impact: Decimal
    recommended_approach: Recommendation

    @property
    def has_issues(self) -> bool:
        return len(self.issues) > 0


@dataclass(frozen=True)
class ReconciliationResult:
    """Stated parent amount compared with the sum of its direct children."""

    parent_code: str
    parent_name: str
    parent_amount: Decimal
    children_sum: Decimal
    variance: Decimal
    variance_percentage: float
    status: VarianceStatus
    children_codes: tuple[str, ...] = ()


@dataclass(frozen=True)
class RetroactiveChange:
    """One historical row touched by a retroactive classification change."""

    row_id: Optional[int]
    report_id: Optional[int]
    account_code: str
    amount: Decimal
    old_flow_type: FlowType
    old_classification: Optional[Classification]


@dataclass(frozen=True)
class RetroactiveImpact:
    """Planned effect of applying a classification to a code's history."""

    account_code: str
    family_key: str
    new_flow_type: FlowType
    new_classification: Classification
    affected_records: int
    affected_reports: tuple[int, ...]
    total_financial_impact: Decimal
    changes: tuple[RetroactiveChange, ...] = ()

    @property
    def row_ids(self) -> tuple[int, ...]:
        return tuple(c.row_id for c in self.changes if c.row_id is not None)


@dataclass(frozen=True)
class SiblingInfo:
    """Sibling summary used by the family context view."""

    code: str
    label: str
    amount: Decimal
    status: ClassificationStatus
    detail_class: Optional[str] = None


@dataclass(frozen=True)
class FamilyContext:
    """Family surroundings of one account at its own hierarchy level."""

    family_key: str
    family_name: str
    level: int
    siblings: tuple[SiblingInfo, ...]
    classified_siblings: int
    total_siblings: int
    completeness_percentage: float
    recommended_approach: ApproachType
    has_mixed_siblings: bool
    missing_amount: Decimal


@dataclass(frozen=True)
class ClassificationSuggestion:
    """Classification proposed from the account's siblings."""

    account_code: str
    source: str
    confidence: float
    reasoning: str
    flow_type: FlowType = FlowType.UNDEFINED
    classification: Optional[Classification] = None
    context: Optional[FamilyContext] = None


@dataclass(frozen=True)
class PreApplyCheck:
    """Outcome of checking a proposed classification for double counting."""

    valid: bool
    error: Optional[str] = None
    severity: Optional[Severity] = None
    financial_impact: Decimal = Decimal("0")
    message: str = ""
    conflicting_codes: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ClassificationHistoryEntry:
    """Classification of one account code in one historical report."""

    report_id: Optional[int]
    report_name: str
    amount: Decimal
    flow_type: FlowType
    classification: Optional[Classification]
