"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class MalformedCodeError(ValidationError):
    """Account code does not match the TTTT-DDDD-CCC-FFF format."""

    def __init__(self, code: object):
        self.code = code
        super().__init__(malformed_code(code))


class FamilyInvariantError(DomainError):
    """An account was placed in a family its own code does not belong to.

    This is a caller bug, not a data-quality problem, and aborts the run.
    """


# Data-quality markers attached to log records as extra["warning"].
# A computed parent code has no row in the dataset.
MISSING_PARENT_DATA = "missing_parent_data"
# A family has no Level-1 or Level-2 row to take its name from.
AMBIGUOUS_FAMILY_NAME = "ambiguous_family_name"
# An account code skips a hierarchy segment (e.g. 5000-1002-000-004).
STRUCTURAL_GAP = "structural_gap"


def malformed_code(code: object) -> str:
    """Return message for an account code with the wrong shape."""
    return f"Malformed account code '{code}': expected format XXXX-YYYY-ZZZ-WWW"


def report_not_found(report: int | str) -> str:
    """Return message for missing report."""
    return f"Report '{report}' not found"


def rule_not_found(account_code: str) -> str:
    """Return message for missing active classification rule."""
    return f"No active classification rule for account '{account_code}'"


def duplicate_report_name(name: str) -> str:
    """Return message for duplicate report names."""
    return f"Report with name '{name}' already exists"


def family_mismatch(code: str, expected: str, actual: str) -> str:
    """Return message for an account filed under the wrong family."""
    return (
        f"Account {code} belongs to family {actual} "
        f"but was grouped under family {expected}"
    )
