"""Amount parsing and formatting utilities."""

from decimal import Decimal, InvalidOperation
import re

from ledgercheck.domain.errors import ValidationError


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "13150000"
    - "$13,150,000.00"
    - "MX$ 656"
    - "-482,300"
    - "(656.00)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValidationError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValidationError("Empty amount string")

    cleaned = amount_str.strip()

    is_negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        is_negative = True
        cleaned = cleaned[1:-1]

    # Currency markers and thousands separators
    cleaned = re.sub(r"(MXN|MX\$|USD|[$€£])", "", cleaned)
    cleaned = cleaned.replace(",", "").replace(" ", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValidationError(f"Could not parse amount '{amount_str}'") from e

    return -amount if is_negative else amount


def format_currency(amount: Decimal | int | float) -> str:
    """Format an absolute amount in whole currency units, e.g. "$13,150,000"."""
    return f"${abs(Decimal(str(amount))):,.0f}"


def format_percentage(value: float | None) -> str:
    """Format a percentage with one decimal place."""
    if value is None:
        return "-"
    return f"{value:.1f}%"
