"""SQLAlchemy mapping metadata for the sell-out domain model."""

from __future__ import annotations

import logging
import uuid
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from sellout.domain.model import CatalogProduct, ReferenceEntity, SalesRecord

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

reference_entity_table = Table(
    "reference_entity",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String(64), nullable=False),
    Column("name", String(255), nullable=False),
    Column("name_key", String(255), nullable=False),
    Column("city", String(128), nullable=True),
    Column("provider_code", String(64), nullable=True),
    UniqueConstraint("code", "name_key"),
)

# Owned by the product catalog; the engine only reads it.
catalog_product_table = Table(
    "catalog_product",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("barcode", String(64), nullable=False, index=True),
    Column("catalog_code", String(64), nullable=False),
)

sales_record_table = Table(
    "sales_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "reference_entity_id",
        UUIDColumnType,
        ForeignKey("reference_entity.id"),
        nullable=False,
    ),
    Column("year", Integer, nullable=False),
    Column("month", Integer, nullable=False),
    Column("day", Integer, nullable=False),
    Column("barcode", String(64), nullable=False),
    Column("pdv_code", String(64), nullable=True),
    Column("pdv_name", String(255), nullable=True),
    Column("brand", String(128), nullable=True),
    Column("description", String(255), nullable=True),
    Column("city", String(128), nullable=True),
    Column("units_sold", Float, nullable=False, default=0.0),
    Column("value_sold", Float, nullable=False, default=0.0),
    Column("stock_units", Float, nullable=False, default=0.0),
    Column("stock_value", Float, nullable=False, default=0.0),
    Column("catalog_code", String(64), nullable=True),
    # NULL PDV codes compare distinct here; the engine collapses them per chunk.
    UniqueConstraint("reference_entity_id", "year", "month", "day", "barcode", "pdv_code"),
    Index("ix_sales_record_period_barcode", "year", "month", "barcode"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model.

    Sales records reference their parent entity by id only; no relationship is
    mapped in either direction.
    """

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(ReferenceEntity, reference_entity_table)
    mapper_registry.map_imperatively(CatalogProduct, catalog_product_table)
    mapper_registry.map_imperatively(SalesRecord, sales_record_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
