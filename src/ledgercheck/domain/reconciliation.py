"""Parent/children amount reconciliation."""

import logging
from decimal import Decimal
from typing import Iterable

from ledgercheck.domain.codes import filter_well_formed, is_direct_child, level_of, parse_code
from ledgercheck.domain.entities import LedgerRow, ReconciliationResult, VarianceStatus
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings

logger = logging.getLogger(__name__)


def classify_variance(
    variance: Decimal,
    variance_percentage: float,
    settings: ValidationSettings = DEFAULT_SETTINGS,
    parent_amount: Decimal | None = None,
) -> VarianceStatus:
    """Classify a parent/children variance.

    Variances within the rounding tolerance, or negligible relative to a
    non-zero parent amount, are PERFECT. A zero parent has no meaningful
    percentage, so any variance beyond the tolerance is at least MINOR.
    """
    if variance <= settings.rounding_tolerance:
        return VarianceStatus.PERFECT
    if parent_amount == 0:
        return VarianceStatus.MINOR_VARIANCE
    if variance_percentage <= settings.perfect_variance_percentage:
        return VarianceStatus.PERFECT
    if variance_percentage <= settings.minor_variance_percentage:
        return VarianceStatus.MINOR_VARIANCE
    if variance_percentage <= settings.major_variance_percentage:
        return VarianceStatus.MAJOR_VARIANCE
    return VarianceStatus.CRITICAL_MISMATCH


def reconcile_rows(
    rows: Iterable[LedgerRow], settings: ValidationSettings = DEFAULT_SETTINGS
) -> list[ReconciliationResult]:
    """Compare every stated parent amount with the sum of its direct children.

    Only direct children are summed, so grandchildren are never counted twice.
    Parents without children in the data are skipped.

    Args:
        rows: Ledger rows of one snapshot
        settings: Reconciliation tolerances

    Returns:
        Non-PERFECT results, largest variance first, ties by parent code
    """
    parsed = [(row, parse_code(row.code)) for row in filter_well_formed(rows)]
    results = []
    checked = 0

    for parent_row, parent in parsed:
        if level_of(parent) == 4:
            continue
        children = [(row, addr) for row, addr in parsed if is_direct_child(addr, parent)]
        if not children:
            continue

        checked += 1
        parent_amount = Decimal(parent_row.amount)
        children_sum = sum((Decimal(row.amount) for row, _ in children), Decimal("0"))
        variance = abs(parent_amount - children_sum)
        if parent_amount == 0:
            variance_pct = 0.0
        else:
            variance_pct = float(variance / abs(parent_amount) * 100)

        status = classify_variance(variance, variance_pct, settings, parent_amount)
        if status == VarianceStatus.PERFECT:
            continue

        results.append(
            ReconciliationResult(
                parent_code=parent.code,
                parent_name=parent_row.label,
                parent_amount=parent_amount,
                children_sum=children_sum,
                variance=variance,
                variance_percentage=variance_pct,
                status=status,
                children_codes=tuple(sorted(addr.code for _, addr in children)),
            )
        )

    results.sort(key=lambda r: (-r.variance, r.parent_code))
    logger.info("Reconciled %d parents: %d with variances", checked, len(results))
    return results
