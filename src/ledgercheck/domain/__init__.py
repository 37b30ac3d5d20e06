"""Domain layer for ledgercheck application."""

# Services are imported lazily: the database layer imports domain.entities,
# and the services import the database layer.
_SERVICES = {
    "LedgerService": "ledgercheck.domain.ledger",
    "RetroactiveService": "ledgercheck.domain.retroactive",
    "ClassificationRuleService": "ledgercheck.domain.rules",
    "RuleCatalogue": "ledgercheck.domain.rules",
    "HierarchyValidator": "ledgercheck.domain.validation",
    "LedgerValidationService": "ledgercheck.domain.validation_service",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
