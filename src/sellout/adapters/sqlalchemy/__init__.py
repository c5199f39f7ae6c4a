"""SQLAlchemy adapter package for sellout."""

from __future__ import annotations

from .mappings import (
    catalog_product_table,
    create_all_tables,
    mapper_registry,
    reference_entity_table,
    sales_record_table,
    start_mappers,
)
from .repositories import (
    SqlAlchemyCatalogLookup,
    SqlAlchemyReferenceEntityRepository,
    SqlAlchemySalesRecordRepository,
)
from .unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogLookup",
    "SqlAlchemyIngestUnitOfWork",
    "SqlAlchemyReferenceEntityRepository",
    "SqlAlchemySalesRecordRepository",
    "StartupError",
    "build_engine",
    "catalog_product_table",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "reference_entity_table",
    "sales_record_table",
    "shutdown",
    "start_mappers",
    "startup",
]
