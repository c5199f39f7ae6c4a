"""Bulk reconciliation of sales rows against the persistent store."""

from __future__ import annotations

from .catalog import CatalogValidator
from .deletion import BulkDeleteEngine
from .normalize import display_name, normalize_text, reference_key
from .partition import batched, partition, rows_per_statement
from .reconciler import ChunkReconciler
from .resolve import EntityResolution, ReferenceResolver
from .results import (
    BUSINESS_KEY_CONFLICT,
    ENTITY_CONFLICT,
    ENTITY_UNRESOLVED,
    NOT_IN_CATALOG,
    DeletionResult,
    Incident,
    IngestionReport,
    ReconcileResult,
    RowDetail,
)

__all__ = [
    "BUSINESS_KEY_CONFLICT",
    "ENTITY_CONFLICT",
    "ENTITY_UNRESOLVED",
    "NOT_IN_CATALOG",
    "BulkDeleteEngine",
    "CatalogValidator",
    "ChunkReconciler",
    "DeletionResult",
    "EntityResolution",
    "Incident",
    "IngestionReport",
    "ReconcileResult",
    "ReferenceResolver",
    "RowDetail",
    "batched",
    "display_name",
    "normalize_text",
    "partition",
    "reference_key",
    "rows_per_statement",
]
