"""Family context for classifying a single account.

These helpers answer the questions asked while classifying one account by
hand: would this classification double count, what do the account's
siblings look like, and what classification do they suggest.
"""

import math
from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional

from ledgercheck.domain.codes import (
    family_key_of,
    filter_well_formed,
    is_descendant,
    level_of,
    parent_of,
    parse_code,
)
from ledgercheck.domain.entities import (
    ApproachType,
    ClassificationStatus,
    ClassificationSuggestion,
    FamilyContext,
    LedgerRow,
    PreApplyCheck,
    Severity,
    SiblingInfo,
)
from ledgercheck.domain.families import UNKNOWN_FAMILY, group_families
from ledgercheck.domain.rules import RuleCatalogue
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.domain.status import is_classified, status_of
from ledgercheck.utils.amount_parser import format_currency

PARENT_ALREADY_CLASSIFIED = "PARENT_ALREADY_CLASSIFIED"
CHILDREN_ALREADY_CLASSIFIED = "CHILDREN_ALREADY_CLASSIFIED"

# Share of classified siblings that must agree before a pattern is suggested.
PATTERN_THRESHOLD = 0.6
PATTERN_CONFIDENCE = 0.85
RULE_CONFIDENCE = 0.95


def check_before_apply(
    code: str, rows: Iterable[LedgerRow], settings: ValidationSettings = DEFAULT_SETTINGS
) -> PreApplyCheck:
    """Check whether classifying an account would double count.

    Classification is refused when the account's parent is already
    classified, or when any account below it is.

    Args:
        code: Account code about to be classified
        rows: Rows of the report the account belongs to

    Returns:
        PreApplyCheck; valid is False with a CRITICAL severity on conflict
    """
    address = parse_code(code)
    rows = filter_well_formed(rows)
    parent = parent_of(address)

    if parent is not None:
        for row in rows:
            if parse_code(row.code) == parent and is_classified(
                row.flow_type, row.classification, settings
            ):
                return PreApplyCheck(
                    valid=False,
                    error=PARENT_ALREADY_CLASSIFIED,
                    severity=Severity.CRITICAL,
                    financial_impact=abs(row.amount),
                    message=(
                        f"Parent account {parent.code} is already classified. "
                        "This would cause double-counting."
                    ),
                    conflicting_codes=(parent.code,),
                )

    classified_children = [
        row
        for row in rows
        if is_descendant(row.code, address)
        and is_classified(row.flow_type, row.classification, settings)
    ]
    if classified_children:
        impact = sum((abs(row.amount) for row in classified_children), Decimal("0"))
        return PreApplyCheck(
            valid=False,
            error=CHILDREN_ALREADY_CLASSIFIED,
            severity=Severity.CRITICAL,
            financial_impact=impact,
            message=(
                f"{len(classified_children)} child accounts are already classified. "
                f"{format_currency(impact)} would be double-counted in reports."
            ),
            conflicting_codes=tuple(sorted(row.code.strip() for row in classified_children)),
        )

    return PreApplyCheck(valid=True, message="No classification conflicts")


def _approach_for_level(level: int, detail_accounts: int, settings: ValidationSettings) -> ApproachType:
    if level == 4 and 0 < detail_accounts <= settings.max_detail_accounts:
        return ApproachType.DETAIL_CLASSIFICATION
    if level == 3 or detail_accounts > settings.max_detail_accounts:
        return ApproachType.SUMMARY_CLASSIFICATION
    if level <= 2:
        return ApproachType.HIGH_LEVEL_CLASSIFICATION
    return ApproachType.SUMMARY_CLASSIFICATION


def family_context(
    code: str, rows: Iterable[LedgerRow], settings: ValidationSettings = DEFAULT_SETTINGS
) -> FamilyContext:
    """Describe the accounts at the same level of the same family as code."""
    address = parse_code(code)
    key = family_key_of(address)
    level = level_of(address)
    family = group_families(rows, settings).get(key)
    accounts = family.accounts(level) if family is not None else ()

    siblings = tuple(
        SiblingInfo(
            code=acc.code,
            label=acc.label,
            amount=acc.amount,
            status=acc.status,
            detail_class=acc.classification.detail_class if acc.classification else None,
        )
        for acc in accounts
    )
    classified = [s for s in siblings if s.status == ClassificationStatus.CLASSIFIED]
    unclassified = [s for s in siblings if s.status != ClassificationStatus.CLASSIFIED]
    detail_accounts = len(family.accounts(4)) if family is not None else 0

    return FamilyContext(
        family_key=key,
        family_name=family.name if family is not None else UNKNOWN_FAMILY,
        level=level,
        siblings=siblings,
        classified_siblings=len(classified),
        total_siblings=len(siblings),
        completeness_percentage=len(classified) / len(siblings) * 100 if siblings else 0.0,
        recommended_approach=_approach_for_level(level, detail_accounts, settings),
        has_mixed_siblings=bool(classified) and bool(unclassified),
        missing_amount=sum((s.amount for s in unclassified), Decimal("0")),
    )


def suggest_classification(
    code: str,
    rows: Iterable[LedgerRow],
    rules: Optional[RuleCatalogue] = None,
    settings: ValidationSettings = DEFAULT_SETTINGS,
) -> ClassificationSuggestion:
    """Suggest a classification for an account.

    A catalogue rule for the code wins. Otherwise the dominant classification
    among the classified siblings is suggested when at least 60% of them
    share it.
    """
    address = parse_code(code)
    rows = filter_well_formed(rows)
    context = family_context(address.code, rows, settings)

    if rules is not None:
        rule = rules.lookup(address.code)
        if rule is not None:
            return ClassificationSuggestion(
                account_code=address.code,
                source="rule",
                confidence=RULE_CONFIDENCE,
                reasoning="Exact account code match in the classification rules.",
                flow_type=rule.flow_type,
                classification=rule.classification,
                context=context,
            )

    sibling_codes = {s.code for s in context.siblings if s.code != address.code}
    patterns = Counter(
        (row.flow_type, row.classification)
        for row in rows
        if row.code.strip() in sibling_codes
        and status_of(row, settings) == ClassificationStatus.CLASSIFIED
    )
    classified_count = sum(patterns.values())
    if classified_count:
        (flow_type, classification), count = patterns.most_common(1)[0]
        if count >= math.ceil(classified_count * PATTERN_THRESHOLD):
            return ClassificationSuggestion(
                account_code=address.code,
                source="sibling_pattern",
                confidence=PATTERN_CONFIDENCE,
                reasoning=(
                    f"{count} of {classified_count} classified sibling accounts "
                    "use this classification pattern."
                ),
                flow_type=flow_type,
                classification=classification,
                context=context,
            )

    return ClassificationSuggestion(
        account_code=address.code,
        source="unclassified",
        confidence=0.0,
        reasoning="No automatic pattern detected - manual classification needed.",
        context=context,
    )
