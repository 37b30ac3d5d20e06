"""Family aggregation: grouping ledger rows by type+division."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Sequence

from ledgercheck.domain.codes import (
    family_key_of,
    filter_well_formed,
    has_structural_gap,
    level_of,
    parent_of,
    parse_code,
)
from ledgercheck.domain.entities import AccountInfo, Family, LedgerRow
from ledgercheck.domain.errors import (
    AMBIGUOUS_FAMILY_NAME,
    FamilyInvariantError,
    STRUCTURAL_GAP,
    family_mismatch,
)
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings
from ledgercheck.domain.status import status_of

logger = logging.getLogger(__name__)

UNKNOWN_FAMILY = "Unknown Family"


def build_account_info(
    row: LedgerRow, settings: ValidationSettings = DEFAULT_SETTINGS
) -> AccountInfo:
    """Resolve a ledger row's position in the hierarchy.

    Raises:
        MalformedCodeError: If the row's code cannot be parsed
    """
    address = parse_code(row.code)
    level = level_of(address)
    if has_structural_gap(address):
        logger.warning(
            "Account %s skips a hierarchy segment; treating it as level %d",
            address.code,
            level,
            extra={"warning": STRUCTURAL_GAP},
        )

    parent = parent_of(address)
    return AccountInfo(
        code=address.code,
        label=row.label or "",
        amount=Decimal(row.amount or 0),
        level=level,
        family_key=family_key_of(address),
        parent_code=parent.code if parent is not None else None,
        status=status_of(row, settings),
        flow_type=row.flow_type,
        classification=row.classification,
    )


def family_name(accounts: Sequence[AccountInfo]) -> str:
    """Pick a human-readable family name.

    Prefers the level-2 label, then the level-1 label, then the first
    account's label.
    """
    for level in (2, 1):
        for acc in accounts:
            if acc.level == level and acc.label:
                return acc.label

    fallback = next((acc.label for acc in accounts if acc.label), UNKNOWN_FAMILY)
    family_key = accounts[0].family_key if accounts else "?"
    logger.warning(
        "Family %s has no level-1 or level-2 account; using name %r",
        family_key,
        fallback,
        extra={"warning": AMBIGUOUS_FAMILY_NAME},
    )
    return fallback


def check_family(family: Family) -> None:
    """Verify that every account in a family carries the family's key.

    Raises:
        FamilyInvariantError: If an account belongs to a different family
    """
    for level, accounts in family.accounts_by_level.items():
        for acc in accounts:
            actual = family_key_of(parse_code(acc.code))
            if actual != family.family_key or acc.family_key != family.family_key:
                raise FamilyInvariantError(family_mismatch(acc.code, family.family_key, actual))
            if acc.level != level:
                raise FamilyInvariantError(
                    f"Account {acc.code} is level {acc.level} but was bucketed at level {level}"
                )


def build_family(family_key: str, accounts: Iterable[AccountInfo]) -> Family:
    """Build a Family snapshot from already-resolved accounts."""
    ordered = sorted(accounts, key=lambda acc: acc.code)
    by_level: dict[int, list[AccountInfo]] = defaultdict(list)
    for acc in ordered:
        by_level[acc.level].append(acc)

    return Family(
        family_key=family_key,
        name=family_name(ordered),
        total_amount=sum((acc.amount for acc in ordered), Decimal("0")),
        accounts_by_level={level: tuple(by_level.get(level, [])) for level in (1, 2, 3, 4)},
    )


def group_families(
    rows: Iterable[LedgerRow], settings: ValidationSettings = DEFAULT_SETTINGS
) -> dict[str, Family]:
    """Group ledger rows into families keyed by type+division.

    Rows with malformed codes are dropped with a warning. The result does not
    depend on the order of the input rows.

    Args:
        rows: Ledger rows for one snapshot
        settings: Validation settings (placeholder markers)

    Returns:
        Dict mapping family key to Family, sorted by family key
    """
    grouped: dict[str, list[AccountInfo]] = defaultdict(list)
    for row in filter_well_formed(rows):
        info = build_account_info(row, settings)
        grouped[info.family_key].append(info)

    families = {key: build_family(key, grouped[key]) for key in sorted(grouped)}
    logger.debug("Grouped rows into %d families", len(families))
    return families
