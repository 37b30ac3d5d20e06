"""Account code parsing and hierarchy resolution.

Account codes have four fixed-width segments, ``TTTT-DDDD-CCC-FFF``
(account type, division, product or category, detail). The hierarchy is
implicit: the level of an account is given by which trailing segments hold
the zero filler, and the parent code is obtained by zeroing the deepest
non-filler segment. Nothing here performs a lookup, so a computed parent may
not exist in the data.
"""

import logging
import re
from typing import Iterable, Optional

from ledgercheck.domain.entities import AccountAddress, LedgerRow
from ledgercheck.domain.errors import MalformedCodeError

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(
    r"^([A-Za-z0-9]{4})-([A-Za-z0-9]{4})-([A-Za-z0-9]{3})-([A-Za-z0-9]{3})$"
)

DIVISION_FILLER = "0000"
CATEGORY_FILLER = "000"
DETAIL_FILLER = "000"

LEAF_LEVEL = 4


def parse_code(code: str) -> AccountAddress:
    """Parse an account code into an address.

    Args:
        code: Account code such as "5000-1002-001-003"

    Returns:
        Parsed AccountAddress

    Raises:
        MalformedCodeError: If the code does not have four fixed-width segments
    """
    if not isinstance(code, str):
        raise MalformedCodeError(code)

    match = CODE_PATTERN.match(code.strip())
    if match is None:
        raise MalformedCodeError(code)

    return AccountAddress(*match.groups())


def is_well_formed(code: str) -> bool:
    """Return True if the code parses."""
    try:
        parse_code(code)
    except MalformedCodeError:
        return False
    return True


def has_structural_gap(address: AccountAddress) -> bool:
    """Return True if a non-filler segment follows a filler segment."""
    division_zero = address.division == DIVISION_FILLER
    category_zero = address.category == CATEGORY_FILLER
    detail_zero = address.detail == DETAIL_FILLER

    if division_zero and (not category_zero or not detail_zero):
        return True
    return category_zero and not detail_zero


def level_of(address: AccountAddress) -> int:
    """Return the hierarchy level (1 to 4) of an address.

    The deepest non-filler segment decides the level, so codes that skip a
    segment (see has_structural_gap) still classify.
    """
    if address.detail != DETAIL_FILLER:
        return 4
    if address.category != CATEGORY_FILLER:
        return 3
    if address.division != DIVISION_FILLER:
        return 2
    return 1


def family_key_of(address: AccountAddress) -> str:
    """Return the family key (type + division) of an address."""
    return f"{address.type}-{address.division}"


def parent_of(address: AccountAddress) -> Optional[AccountAddress]:
    """Return the structural parent of an address, or None for level 1."""
    level = level_of(address)
    if level == 4:
        return AccountAddress(address.type, address.division, address.category, DETAIL_FILLER)
    if level == 3:
        return AccountAddress(address.type, address.division, CATEGORY_FILLER, DETAIL_FILLER)
    if level == 2:
        return AccountAddress(address.type, DIVISION_FILLER, CATEGORY_FILLER, DETAIL_FILLER)
    return None


def parent_code_of(code: str) -> Optional[str]:
    """Return the parent code of a well-formed code string."""
    parent = parent_of(parse_code(code))
    return parent.code if parent is not None else None


def is_direct_child(child: AccountAddress, parent: AccountAddress) -> bool:
    """Return True if child sits exactly one level below parent in its branch."""
    if level_of(child) != level_of(parent) + 1:
        return False
    return parent_of(child) == parent


def children_prefix(address: AccountAddress) -> Optional[str]:
    """Return the code prefix shared by every descendant, or None for leaves."""
    level = level_of(address)
    if level == 1:
        return address.type
    if level == 2:
        return family_key_of(address)
    if level == 3:
        return f"{address.type}-{address.division}-{address.category}"
    return None


def is_descendant(code: str, ancestor: AccountAddress) -> bool:
    """Return True if code lies strictly below ancestor."""
    prefix = children_prefix(ancestor)
    if prefix is None or code == ancestor.code:
        return False
    try:
        address = parse_code(code)
    except MalformedCodeError:
        return False
    return address.code.startswith(prefix) and level_of(address) > level_of(ancestor)


def filter_well_formed(rows: Iterable[LedgerRow]) -> list[LedgerRow]:
    """Drop rows whose code is malformed, logging each one."""
    kept = []
    for row in rows:
        if is_well_formed(row.code):
            kept.append(row)
        else:
            logger.warning("Skipping row with malformed account code %r (%s)", row.code, row.label)
    return kept
