"""Business-rule settings for the validation engine."""

from dataclasses import dataclass, field, replace
from decimal import Decimal


# Placeholder strings produced by the ingestion layer for "no value".
EMPTY_MARKERS = frozenset(
    {
        "",
        "Sin Categoría",
        "Sin Subcategoría",
        "Sin Clasificación",
        "Indefinido",
        "Uncategorized",
        "Unclassified",
        "Undefined",
    }
)


@dataclass(frozen=True)
class ValidationSettings:
    """Thresholds and switches used by the validator, reconciler and recommender.

    Severity and priority thresholds are listed highest first and map, in
    order, to CRITICAL/HIGH/MEDIUM and priority ranks 1 to 4.
    """

    severity_amounts: tuple[Decimal, ...] = (
        Decimal("1000000"),
        Decimal("500000"),
        Decimal("100000"),
    )
    severity_percentages: tuple[float, ...] = (50.0, 25.0, 10.0)
    priority_amounts: tuple[Decimal, ...] = (
        Decimal("5000000"),
        Decimal("1000000"),
        Decimal("500000"),
        Decimal("100000"),
    )
    priority_percentages: tuple[float, ...] = (75.0, 50.0, 25.0, 10.0)

    # Reconciliation
    rounding_tolerance: Decimal = Decimal("1")
    perfect_variance_percentage: float = 0.001
    minor_variance_percentage: float = 1.0
    major_variance_percentage: float = 5.0

    # Mixed-sibling batches at or below this size are safe to auto-fix.
    auto_fix_max_unclassified: int = 2

    # Recommender: more detail accounts than this favour summary classification.
    max_detail_accounts: int = 15

    # Also flag a directly classified parent whose children are only partly classified.
    flag_partial_coverage: bool = False

    # Bulk changes above either limit are logged as significant.
    significant_change_records: int = 10
    significant_change_amount: Decimal = Decimal("1000000")

    empty_markers: frozenset[str] = field(default=EMPTY_MARKERS)

    def with_overrides(self, **changes) -> "ValidationSettings":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_SETTINGS = ValidationSettings()
