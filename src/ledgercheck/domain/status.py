"""Classification status evaluation.

A row is CLASSIFIED when its flow type and its category and detail
classification hold real values. A parent that is not classified itself is
IMPLICITLY_CLASSIFIED when its children fully cover it. That status is
derived from a family snapshot on every run and never stored.
"""

from collections import defaultdict
from typing import Optional

from ledgercheck.domain.codes import level_of, parent_of, parse_code
from ledgercheck.domain.entities import (
    AccountInfo,
    Classification,
    ClassificationStatus,
    Family,
    FlowType,
    LedgerRow,
)
from ledgercheck.domain.settings import DEFAULT_SETTINGS, ValidationSettings


def _has_value(value: Optional[str], settings: ValidationSettings) -> bool:
    return value is not None and value.strip() not in settings.empty_markers


def is_classified(
    flow_type: FlowType,
    classification: Optional[Classification],
    settings: ValidationSettings = DEFAULT_SETTINGS,
) -> bool:
    """Return True if the flow type and classification fields are all set.

    The subcategory is not required; the original ledgers leave it empty for
    many fully classified rows.
    """
    if flow_type == FlowType.UNDEFINED or classification is None:
        return False
    return _has_value(classification.category, settings) and _has_value(
        classification.detail_class, settings
    )


def status_of(
    row: LedgerRow, settings: ValidationSettings = DEFAULT_SETTINGS
) -> ClassificationStatus:
    """Return the raw classification status of a ledger row."""
    if is_classified(row.flow_type, row.classification, settings):
        return ClassificationStatus.CLASSIFIED
    return ClassificationStatus.UNCLASSIFIED


def build_child_index(family: Family) -> dict[str, tuple[str, ...]]:
    """Map each parent code in a family to the codes of its direct children.

    Parents that have no row of their own (for example a level-3 summary the
    source ledger omitted) still appear, so the tree stays connected.
    """
    children: dict[str, set[str]] = defaultdict(set)
    present = {acc.code for acc in family.all_accounts()}
    pending = []

    for acc in family.all_accounts():
        if acc.parent_code is None:
            continue
        children[acc.parent_code].add(acc.code)
        if acc.parent_code not in present:
            pending.append(acc.parent_code)

    seen = set()
    while pending:
        code = pending.pop()
        if code in seen:
            continue
        seen.add(code)
        parent = parent_of(parse_code(code))
        if parent is None:
            continue
        children[parent.code].add(code)
        if parent.code not in present:
            pending.append(parent.code)

    return {parent: tuple(sorted(codes)) for parent, codes in sorted(children.items())}


def implicit_codes(
    family: Family, child_index: Optional[dict[str, tuple[str, ...]]] = None
) -> frozenset[str]:
    """Return the codes covered through their children.

    A level-3 code is covered when it has level-4 children in the data and
    every one of them is CLASSIFIED. A level-2 code is covered when every
    direct child is either CLASSIFIED or covered itself. Codes are included
    whether or not the parent is classified directly.
    """
    if child_index is None:
        child_index = build_child_index(family)
    accounts = {acc.code: acc for acc in family.all_accounts()}
    implicit: set[str] = set()

    def covered(code: str) -> bool:
        acc = accounts.get(code)
        return (acc is not None and acc.is_classified) or code in implicit

    for parent_level in (3, 2):
        for parent_code, child_codes in child_index.items():
            if level_of(parse_code(parent_code)) != parent_level:
                continue
            if parent_level == 3:
                leaves = [accounts[c] for c in child_codes if c in accounts]
                if leaves and all(leaf.is_classified for leaf in leaves):
                    implicit.add(parent_code)
            elif child_codes and all(covered(c) for c in child_codes):
                implicit.add(parent_code)

    return frozenset(implicit)


def effective_status(account: AccountInfo, implicit: frozenset[str]) -> ClassificationStatus:
    """Return the status of an account including implicit coverage."""
    if account.is_classified:
        return ClassificationStatus.CLASSIFIED
    if account.level < 4 and account.code in implicit:
        return ClassificationStatus.IMPLICITLY_CLASSIFIED
    return ClassificationStatus.UNCLASSIFIED


def annotate_family(family: Family) -> dict[str, ClassificationStatus]:
    """Return the effective status of every account in a family."""
    implicit = implicit_codes(family)
    return {acc.code: effective_status(acc, implicit) for acc in family.all_accounts()}
