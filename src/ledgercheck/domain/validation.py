"""Bottom-up hierarchy consistency validator.

Each family is walked from the detail level upward:

* Step A: Level-4 siblings under one Level-3 parent must be either all
  classified or all unclassified (MIXED_LEVEL4_SIBLINGS).
* Step A': the same rule for Level-3 siblings under one Level-2 parent,
  where a Level-3 covered by its children counts as classified
  (MIXED_LEVEL3_SIBLINGS).
* Step B: a Level-3 account must not be classified directly while its
  children already cover it (OVER_CLASSIFICATION).
* Step C: the same over-classification rule for Level-2 accounts.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from ledgercheck.domain.codes import level_of, parent_of, parse_code
from ledgercheck.domain.entities import (
    AccountInfo,
    ClassificationStatus,
    Family,
    FamilyValidationResult,
    Issue,
    IssueType,
    LedgerRow,
    Severity,
)
from ledgercheck.domain.errors import MISSING_PARENT_DATA
from ledgercheck.domain.families import check_family, group_families
from ledgercheck.domain.recommendation import recommend_approach
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.domain.status import build_child_index, implicit_codes
from ledgercheck.utils.amount_parser import format_currency

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def calculate_severity(
    amount: Decimal,
    missing_percentage: Optional[float] = None,
    settings: ValidationSettings = DEFAULT_SETTINGS,
) -> Severity:
    """Map an absolute impact and optional missing percentage to a severity."""
    amount = abs(amount)
    pct = missing_percentage if missing_percentage is not None else 0.0
    levels = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM)
    for severity, threshold, pct_threshold in zip(
        levels, settings.severity_amounts, settings.severity_percentages
    ):
        if amount >= threshold or pct > pct_threshold:
            return severity
    return Severity.LOW


def calculate_priority(
    amount: Decimal,
    missing_percentage: Optional[float] = None,
    settings: ValidationSettings = DEFAULT_SETTINGS,
) -> int:
    """Map an absolute impact and optional missing percentage to a rank, 1 highest."""
    amount = abs(amount)
    pct = missing_percentage if missing_percentage is not None else 0.0
    for rank, (threshold, pct_threshold) in enumerate(
        zip(settings.priority_amounts, settings.priority_percentages), start=1
    ):
        if amount >= threshold or pct > pct_threshold:
            return rank
    return len(settings.priority_amounts) + 1


def _abs_sum(accounts: Iterable[AccountInfo]) -> Decimal:
    return sum((abs(acc.amount) for acc in accounts), ZERO)


def _describe(accounts: Iterable[AccountInfo]) -> list[str]:
    return [f"  - {acc.code} - {acc.label} ({format_currency(acc.amount)})" for acc in accounts]


class HierarchyValidator:
    """Runs the bottom-up consistency checks over families of accounts."""

    def __init__(self, settings: ValidationSettings = DEFAULT_SETTINGS):
        """Initialize validator.

        Args:
            settings: Thresholds and switches for severity, priority and coverage
        """
        self.settings = settings

    def validate_rows(self, rows: Iterable[LedgerRow]) -> list[FamilyValidationResult]:
        """Validate every family found in a set of ledger rows.

        Families without issues are left out. Results are ordered by total
        financial impact, largest first, ties broken by family key.

        Args:
            rows: Ledger rows of one snapshot

        Returns:
            List of family results that have at least one issue
        """
        families = group_families(rows, self.settings)
        results = [self.validate_family(family) for family in families.values()]
        with_issues = [result for result in results if result.has_issues]
        with_issues.sort(key=lambda r: (-r.financial_impact, r.family_key))

        logger.info(
            "Validated %d families: %d with issues, %d issues in total",
            len(families),
            len(with_issues),
            sum(len(r.issues) for r in with_issues),
        )
        return with_issues

    def validate_family(self, family: Family) -> FamilyValidationResult:
        """Validate one family.

        Raises:
            FamilyInvariantError: If the family contains a foreign account
        """
        check_family(family)
        child_index = build_child_index(family)
        implicit = implicit_codes(family, child_index)

        issues: list[Issue] = []
        issues.extend(self.level4_sibling_issues(family))
        issues.extend(self.level3_sibling_issues(family, child_index, implicit))
        issues.extend(self.level3_overclassification_issues(family, child_index, implicit))
        issues.extend(self.level2_overclassification_issues(family, child_index, implicit))

        total_impact = sum((issue.financial_impact for issue in issues), ZERO)
        logger.debug(
            "Family %s (%s): %d issues, impact %s",
            family.family_key,
            family.name,
            len(issues),
            total_impact,
        )
        return FamilyValidationResult(
            family_key=family.family_key,
            family_name=family.name,
            total_amount=family.total_amount,
            issues=tuple(issues),
            financial_impact=total_impact,
            recommended_approach=recommend_approach(family, self.settings),
        )

    # Step A

    def level4_sibling_issues(self, family: Family) -> list[Issue]:
        """Find Level-4 sibling groups mixing classified and unclassified accounts."""
        groups: dict[str, list[AccountInfo]] = defaultdict(list)
        for acc in family.accounts(4):
            groups[acc.parent_code].append(acc)

        issues = []
        for parent_code in sorted(groups):
            siblings = groups[parent_code]
            classified = tuple(acc for acc in siblings if acc.is_classified)
            unclassified = tuple(acc for acc in siblings if not acc.is_classified)
            if len(siblings) < 2 or not classified or not unclassified:
                continue

            parent = family.find(parent_code)
            issues.append(
                self._mixed_siblings_issue(
                    IssueType.MIXED_LEVEL4_SIBLINGS,
                    level=4,
                    parent_code=parent_code,
                    parent=parent,
                    covered=classified,
                    uncovered=unclassified,
                )
            )
        return issues

    # Step A'

    def level3_sibling_issues(
        self,
        family: Family,
        child_index: Optional[dict[str, tuple[str, ...]]] = None,
        implicit: Optional[frozenset[str]] = None,
    ) -> list[Issue]:
        """Find Level-3 sibling groups mixing covered and untouched accounts.

        A Level-3 sibling counts as covered when it is classified directly or
        through its children, and as untouched when neither it nor any of its
        children is classified. Level-3 accounts whose children are only
        partly classified already produce a Level-4 issue and are skipped.
        """
        if child_index is None:
            child_index = build_child_index(family)
        if implicit is None:
            implicit = implicit_codes(family, child_index)

        issues = []
        for parent_code, child_codes in child_index.items():
            if level_of(parse_code(parent_code)) != 2:
                continue
            siblings = [
                self._account_or_derived(family, code, child_index)
                for code in child_codes
                if level_of(parse_code(code)) == 3
            ]
            covered, untouched = [], []
            for acc in siblings:
                if acc.is_classified or acc.code in implicit:
                    covered.append(acc)
                elif not self._has_classified_children(family, acc.code, child_index):
                    untouched.append(acc)
            if len(siblings) < 2 or not covered or not untouched:
                continue

            parent = family.find(parent_code)
            issues.append(
                self._mixed_siblings_issue(
                    IssueType.MIXED_LEVEL3_SIBLINGS,
                    level=3,
                    parent_code=parent_code,
                    parent=parent,
                    covered=tuple(covered),
                    uncovered=tuple(untouched),
                )
            )
        return issues

    # Step B

    def level3_overclassification_issues(
        self,
        family: Family,
        child_index: Optional[dict[str, tuple[str, ...]]] = None,
        implicit: Optional[frozenset[str]] = None,
    ) -> list[Issue]:
        """Find Level-3 accounts classified both directly and through their children."""
        return self._overclassification_issues(family, 3, child_index, implicit)

    # Step C

    def level2_overclassification_issues(
        self,
        family: Family,
        child_index: Optional[dict[str, tuple[str, ...]]] = None,
        implicit: Optional[frozenset[str]] = None,
    ) -> list[Issue]:
        """Find Level-2 accounts classified both directly and through their children."""
        return self._overclassification_issues(family, 2, child_index, implicit)

    def _overclassification_issues(
        self,
        family: Family,
        level: int,
        child_index: Optional[dict[str, tuple[str, ...]]],
        implicit: Optional[frozenset[str]],
    ) -> list[Issue]:
        if child_index is None:
            child_index = build_child_index(family)
        if implicit is None:
            implicit = implicit_codes(family, child_index)

        issues = []
        for parent in family.accounts(level):
            if not parent.is_classified:
                continue
            children = [
                self._account_or_derived(family, code, child_index)
                for code in child_index.get(parent.code, ())
            ]
            covering = tuple(
                child for child in children if child.is_classified or child.code in implicit
            )
            covering_codes = {child.code for child in covering}
            uncovered = tuple(child for child in children if child.code not in covering_codes)

            if parent.code in implicit:
                duplicated = min(abs(parent.amount), _abs_sum(children))
            elif self.settings.flag_partial_coverage and covering:
                duplicated = min(abs(parent.amount), _abs_sum(covering))
            else:
                continue

            issues.append(
                self._overclassification_issue(parent, covering, uncovered, duplicated)
            )
        return issues

    # Helpers

    def _account_or_derived(
        self, family: Family, code: str, child_index: dict[str, tuple[str, ...]]
    ) -> AccountInfo:
        """Return the account for a code, synthesizing one for parents without a row."""
        acc = family.find(code)
        if acc is not None:
            return acc

        children = [
            self._account_or_derived(family, child, child_index)
            for child in child_index.get(code, ())
        ]
        address = parse_code(code)
        parent = parent_of(address)
        return AccountInfo(
            code=code,
            label="",
            amount=sum((child.amount for child in children), ZERO),
            level=level_of(address),
            family_key=family.family_key,
            parent_code=parent.code if parent is not None else None,
            status=ClassificationStatus.UNCLASSIFIED,
        )

    def _has_classified_children(
        self, family: Family, code: str, child_index: dict[str, tuple[str, ...]]
    ) -> bool:
        for child_code in child_index.get(code, ()):
            child = family.find(child_code)
            if child is not None and child.is_classified:
                return True
            if self._has_classified_children(family, child_code, child_index):
                return True
        return False

    def _mixed_siblings_issue(
        self,
        issue_type: IssueType,
        level: int,
        parent_code: str,
        parent: Optional[AccountInfo],
        covered: tuple[AccountInfo, ...],
        uncovered: tuple[AccountInfo, ...],
    ) -> Issue:
        total = len(covered) + len(uncovered)
        completeness = len(covered) / total * 100

        if parent is not None and parent.amount != 0:
            impact = abs(abs(parent.amount) - _abs_sum(covered))
            missing_pct = float(impact / abs(parent.amount) * 100)
        else:
            if parent is None:
                logger.warning(
                    "Parent %s of mixed Level %d siblings has no row; "
                    "using the unclassified amount as impact",
                    parent_code,
                    level,
                    extra={"warning": MISSING_PARENT_DATA},
                )
            impact = _abs_sum(uncovered)
            missing_pct = None

        prefix = "MIXED_LEVEL4" if level == 4 else "MIXED_LEVEL3"
        kind = "detail" if level == 4 else "summary"
        resolution = [f"RECOMMENDED: Classify the missing {len(uncovered)} {kind} accounts:"]
        resolution.extend(_describe(uncovered))
        resolution.append(
            f"ALTERNATIVE: Unclassify all {len(covered)} {kind} accounts and "
            f"classify parent {parent_code} for summary reporting"
        )
        resolution.append(
            f"BUSINESS RULE: All sibling accounts at Level {level} should follow "
            "the same classification approach"
        )

        return Issue(
            id=f"{prefix}_{parent_code}",
            type=issue_type,
            severity=calculate_severity(impact, missing_pct, self.settings),
            financial_impact=impact,
            parent_code=parent_code,
            parent_account=parent,
            classified_children=covered,
            unclassified_children=uncovered,
            error_message=(
                f"Mixed Level {level} classification in {parent_code}: "
                f"{len(covered)} of {total} {kind} accounts are classified."
            ),
            business_impact=(
                f"{format_currency(impact)} in {kind} amounts will not appear "
                "in granular analysis reports."
            ),
            resolution_steps=tuple(resolution),
            auto_fixable=len(uncovered) <= self.settings.auto_fix_max_unclassified,
            priority_rank=calculate_priority(impact, missing_pct, self.settings),
            completeness_percentage=completeness,
            missing_percentage=missing_pct,
        )

    def _overclassification_issue(
        self,
        parent: AccountInfo,
        covering: tuple[AccountInfo, ...],
        uncovered: tuple[AccountInfo, ...],
        duplicated: Decimal,
    ) -> Issue:
        child_level = parent.level + 1
        name = parent.label or parent.code
        return Issue(
            id=f"OVER_CLASSIFICATION_{parent.code}",
            type=IssueType.OVER_CLASSIFICATION,
            severity=Severity.CRITICAL,
            financial_impact=duplicated,
            parent_code=parent.code,
            parent_account=parent,
            classified_children=covering,
            unclassified_children=uncovered,
            error_message=(
                f"Over-classification detected: {name} is directly classified "
                f"AND has classified Level {child_level} children."
            ),
            business_impact=(
                f"{format_currency(duplicated)} will be double-counted in financial "
                f"reports - once at Level {parent.level} and again through "
                f"Level {child_level} accounts."
            ),
            resolution_steps=(
                "CRITICAL: Choose one classification level to prevent double-counting",
                f"RECOMMENDED: Keep Level {child_level} classifications and remove "
                f"the direct classification of {parent.code}",
                f"ALTERNATIVE: Keep {parent.code} classified and remove all "
                f"Level {child_level} classifications below it",
            ),
            auto_fixable=True,
            priority_rank=1,
        )
