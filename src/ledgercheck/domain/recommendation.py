"""Approach recommender: which hierarchy level a family should be classified at."""

import logging

from ledgercheck.domain.entities import AccountInfo, ApproachType, Family, Recommendation
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.utils.amount_parser import format_currency

logger = logging.getLogger(__name__)

APPROACH_LEVELS = {
    ApproachType.DETAIL_CLASSIFICATION: 4,
    ApproachType.SUMMARY_CLASSIFICATION: 3,
    ApproachType.HIGH_LEVEL_CLASSIFICATION: 2,
}

LEVEL_NAMES = {4: "detail", 3: "summary", 2: "division"}

BUSINESS_BENEFITS = {
    ApproachType.DETAIL_CLASSIFICATION: (
        "Maximum granularity for cost analysis",
        "Variance tracking per individual account",
    ),
    ApproachType.SUMMARY_CLASSIFICATION: (
        "Balances detail with manageability",
        "Fewer accounts to keep classified period over period",
    ),
    ApproachType.HIGH_LEVEL_CLASSIFICATION: (
        "Minimal classification effort",
        "Stable totals for executive reporting",
    ),
}


def _classified_count(accounts: tuple[AccountInfo, ...]) -> int:
    return sum(1 for acc in accounts if acc.is_classified)


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def _actions(family: Family, approach: ApproachType) -> tuple[str, ...]:
    level = APPROACH_LEVELS[approach]
    actions = [
        f"Classify {acc.code} - {acc.label} ({format_currency(acc.amount)})"
        for acc in family.accounts(level)
        if not acc.is_classified
    ]
    other_levels = [LEVEL_NAMES[lvl] for lvl in (4, 3, 2) if lvl != level]
    actions.append(
        f"Keep {' and '.join(other_levels)} accounts unclassified to avoid double-counting"
    )
    return tuple(actions)


def recommend_approach(
    family: Family, settings: ValidationSettings = DEFAULT_SETTINGS
) -> Recommendation:
    """Recommend the classification level for a family.

    The level holding the most directly classified accounts wins: detail
    (Level 4) must strictly lead, summary (Level 3) wins ties against Level 2.
    With nothing classified yet, families with many detail accounts are
    steered to summary classification.

    Args:
        family: Family snapshot
        settings: Validation settings (detail account cutoff)

    Returns:
        Recommendation with the completeness at the chosen level
    """
    totals = {level: len(family.accounts(level)) for level in (2, 3, 4)}
    classified = {level: _classified_count(family.accounts(level)) for level in (2, 3, 4)}
    l2, l3, l4 = classified[2], classified[3], classified[4]

    if l4 > 0 and l4 > l3 and l4 > l2:
        approach = ApproachType.DETAIL_CLASSIFICATION
    elif l3 > 0 and l3 >= l2:
        approach = ApproachType.SUMMARY_CLASSIFICATION
    elif l2 > 0:
        approach = ApproachType.HIGH_LEVEL_CLASSIFICATION
    else:
        approach = None

    if approach is not None:
        level = APPROACH_LEVELS[approach]
        completeness = _percentage(classified[level], totals[level])
        remaining = totals[level] - classified[level]
        reasoning = (
            f"Family is {completeness:.1f}% complete with {LEVEL_NAMES[level]} "
            f"classification. {remaining} Level {level} account(s) remain."
        )
    else:
        completeness = 0.0
        if totals[4] > settings.max_detail_accounts:
            approach = ApproachType.SUMMARY_CLASSIFICATION
            reasoning = (
                f"Family has {totals[4]} Level 4 accounts - "
                "summary classification is more manageable."
            )
        elif totals[4] > 0:
            approach = ApproachType.DETAIL_CLASSIFICATION
            reasoning = (
                f"Family has manageable {totals[4]} Level 4 accounts - "
                "detail classification provides maximum insight."
            )
        else:
            approach = ApproachType.SUMMARY_CLASSIFICATION
            reasoning = "Family structure suggests Level 3 summary classification."

    logger.debug("Family %s: recommending %s", family.family_key, approach.value)
    return Recommendation(
        approach=approach,
        current_completeness=completeness,
        reasoning=reasoning,
        specific_actions=_actions(family, approach),
        business_benefits=BUSINESS_BENEFITS[approach],
    )
