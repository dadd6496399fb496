"""Domain layer for sitebooks application."""

# Services are imported lazily: the database layer imports
# sitebooks.domain.entities, and the services import the database layer.
_SERVICES = {
    "PayeeService": "sitebooks.domain.payee",
    "ClientService": "sitebooks.domain.client",
    "ProjectService": "sitebooks.domain.project",
    "AccountMappingService": "sitebooks.domain.account_mapping",
    "ImportBatchService": "sitebooks.domain.import_batch",
    "CSVImportService": "sitebooks.domain.csv_import",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib
        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
