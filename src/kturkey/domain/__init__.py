"""Domain layer for kturkey application.

Services live in their own modules and are imported from there; only the
database-independent entities and errors are re-exported here.
"""

from kturkey.domain.entities import (
    Account,
    EntryType,
    FiscalPeriod,
    Site,
    Transaction,
    TransferDirection,
    Unit,
    UnitDue,
    UnitPayment,
)
from kturkey.domain.errors import (
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    ReconciliationError,
    ValidationError,
)

__all__ = [
    "Account",
    "EntryType",
    "FiscalPeriod",
    "Site",
    "Transaction",
    "TransferDirection",
    "Unit",
    "UnitDue",
    "UnitPayment",
    "ConflictError",
    "DependencyError",
    "DomainError",
    "NotFoundError",
    "ReconciliationError",
    "ValidationError",
]
