"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    CatalogLookup,
    ExistingSalesQuery,
    ReferenceEntityRepository,
    SalesRecordRepository,
)
from .unit_of_work import (
    IngestRepositories,
    IngestUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CatalogLookup",
    "ExistingSalesQuery",
    "IngestRepositories",
    "IngestUnitOfWork",
    "ReferenceEntityRepository",
    "RepositoryCollection",
    "SalesRecordRepository",
    "UnitOfWork",
]
