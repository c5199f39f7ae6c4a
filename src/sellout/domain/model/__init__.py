"""Domain model for sell-out reconciliation."""

from __future__ import annotations

from .base import Entity, new_id
from .entities import CatalogProduct, ReferenceEntity, SalesRecord
from .keys import BusinessKey, DeleteKey, ReferenceKey, SalesFilter, blank_to_none
from .rows import RowRecord

__all__ = [
    "BusinessKey",
    "CatalogProduct",
    "DeleteKey",
    "Entity",
    "ReferenceEntity",
    "ReferenceKey",
    "RowRecord",
    "SalesFilter",
    "SalesRecord",
    "blank_to_none",
    "new_id",
]
