"""Repository implementations backed by SQLAlchemy sessions.

Every candidate set handed to these repositories is split across as many statements
as needed to stay under the configured bound-parameter ceiling; callers never see
the partitioning. Store failures are translated into domain errors:
``IntegrityError`` becomes ``EntityConflictError`` and any other SQLAlchemy failure
becomes ``StoreUnavailableError``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, delete, func, or_, select, tuple_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sellout.adapters.sqlalchemy.mappings import (
    catalog_product_table,
    reference_entity_table,
    sales_record_table,
)
from sellout.domain.errors import EntityConflictError, StoreUnavailableError
from sellout.domain.model import BusinessKey, DeleteKey, ReferenceEntity, SalesRecord
from sellout.domain.reconciliation.partition import batched, partition

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Sequence
    from uuid import UUID

    from sqlalchemy import ColumnElement
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from sellout.domain.model import ReferenceKey, SalesFilter
    from sellout.domain.ports import ExistingSalesQuery

log = logging.getLogger(__name__)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        raise EntityConflictError(f"{action} violated a uniqueness constraint: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(f"{action} failed: {exc}") from exc


class _PartitionedRepository:
    def __init__(self, session: Session, *, parameter_ceiling: int, in_limit: int) -> None:
        self.session = session
        self._parameter_ceiling = parameter_ceiling
        self._in_limit = in_limit

    def _rows_per_statement(self, params_per_row: int) -> int:
        return min(self._in_limit, self._parameter_ceiling // params_per_row)


class SqlAlchemyReferenceEntityRepository(_PartitionedRepository):
    def find_by_keys(
        self, keys: Collection[ReferenceKey]
    ) -> dict[ReferenceKey, ReferenceEntity]:
        table = reference_entity_table
        pairs = [(key.code, key.name) for key in keys if key.name is not None]
        found: dict[ReferenceKey, ReferenceEntity] = {}
        for batch in partition(pairs, 2, self._parameter_ceiling, max_rows=self._in_limit):
            stmt = select(ReferenceEntity).where(
                tuple_(table.c.code, table.c.name_key).in_(batch)
            )
            with _store_errors("Reference entity lookup"):
                entities = self.session.execute(stmt).scalars().all()
            for entity in entities:
                found[entity.key] = entity
        return found

    def find_by_codes(self, codes: Collection[str]) -> dict[str, ReferenceEntity]:
        table = reference_entity_table
        found: dict[str, ReferenceEntity] = {}
        for batch in batched(sorted(set(codes)), self._rows_per_statement(1)):
            stmt = (
                select(ReferenceEntity)
                .where(table.c.code.in_(batch))
                .order_by(table.c.code, table.c.name_key)
            )
            with _store_errors("Reference entity lookup by code"):
                entities = self.session.execute(stmt).scalars().all()
            for entity in entities:
                found.setdefault(entity.code, entity)
        return found

    def create(self, entity: ReferenceEntity) -> None:
        with _store_errors(f"Creation of reference entity {entity.code} / {entity.name_key}"):
            with self.session.begin_nested():
                self.session.add(entity)
                self.session.flush()


class SqlAlchemyCatalogLookup(_PartitionedRepository):
    def lookup_by_barcodes(self, barcodes: Collection[str]) -> dict[str, str]:
        table = catalog_product_table
        found: dict[str, str] = {}
        for batch in batched(sorted(set(barcodes)), self._rows_per_statement(1)):
            stmt = (
                select(table.c.barcode, func.min(table.c.catalog_code))
                .where(table.c.barcode.in_(batch))
                .group_by(table.c.barcode)
            )
            with _store_errors("Catalog lookup"):
                rows = self.session.execute(stmt).all()
            for barcode, catalog_code in rows:
                found[barcode] = catalog_code
        return found


class SqlAlchemySalesRecordRepository(_PartitionedRepository):
    def find_existing(self, query: ExistingSalesQuery) -> dict[BusinessKey, UUID]:
        if query.is_empty:
            return {}
        table = sales_record_table
        years = sorted(query.years)
        months = sorted(query.months)
        # years and months are bound in full; the three remaining dimensions share the rest
        per_dimension = (self._parameter_ceiling - len(years) - len(months)) // 3
        size = min(self._in_limit, per_dimension)
        if size <= 0:
            raise ValueError(
                f"{len(years)} years and {len(months)} months leave no room under a "
                f"parameter ceiling of {self._parameter_ceiling}"
            )

        pdv_batches: list[list[str] | None] = (
            list(batched(sorted(query.pdv_codes), size)) if query.pdv_codes else [None]
        )
        found: dict[BusinessKey, UUID] = {}
        statements = 0
        for entity_ids in batched(sorted(query.entity_ids, key=str), size):
            for barcodes in batched(sorted(query.barcodes), size):
                for pdv_codes in pdv_batches:
                    pdv_condition: ColumnElement[bool] = (
                        table.c.pdv_code.is_(None)
                        if pdv_codes is None
                        else or_(table.c.pdv_code.in_(pdv_codes), table.c.pdv_code.is_(None))
                    )
                    stmt = select(
                        table.c.id,
                        table.c.reference_entity_id,
                        table.c.year,
                        table.c.month,
                        table.c.day,
                        table.c.barcode,
                        table.c.pdv_code,
                    ).where(
                        table.c.year.in_(years),
                        table.c.month.in_(months),
                        table.c.barcode.in_(barcodes),
                        table.c.reference_entity_id.in_(entity_ids),
                        pdv_condition,
                    )
                    with _store_errors("Existing sales lookup"):
                        rows = self.session.execute(stmt).all()
                    statements += 1
                    for record_id, entity_id, year, month, day, barcode, pdv_code in rows:
                        key = BusinessKey(
                            entity_id=entity_id,
                            year=year,
                            month=month,
                            day=day,
                            barcode=barcode,
                            pdv_code=pdv_code,
                        )
                        found[key] = record_id
        log.debug("Fetched %d existing sales records in %d statements", len(found), statements)
        return found

    def insert_batch(self, records: Sequence[SalesRecord]) -> None:
        if not records:
            return
        with _store_errors(f"Insert of {len(records)} sales records"):
            with self.session.begin_nested():
                self.session.add_all(records)
                self.session.flush()

    def update_batch(self, records: Sequence[SalesRecord]) -> None:
        if not records:
            return
        values = [_update_values(record) for record in records]
        with _store_errors(f"Update of {len(records)} sales records"):
            self.session.execute(update(SalesRecord), values)

    def delete_by_keys(self, keys: Sequence[DeleteKey]) -> int:
        if not keys:
            return 0
        if len(keys) * DeleteKey.PARAMS_PER_ROW > self._parameter_ceiling:
            raise ValueError(
                f"{len(keys)} delete keys exceed the parameter ceiling of "
                f"{self._parameter_ceiling}; partition them first"
            )
        table = sales_record_table
        with_pdv = [
            (key.year, key.month, key.barcode, key.pdv_code)
            for key in keys
            if key.pdv_code is not None
        ]
        without_pdv = [(key.year, key.month, key.barcode) for key in keys if key.pdv_code is None]
        conditions: list[ColumnElement[bool]] = []
        if with_pdv:
            conditions.append(
                tuple_(table.c.year, table.c.month, table.c.barcode, table.c.pdv_code).in_(
                    with_pdv
                )
            )
        if without_pdv:
            conditions.append(
                and_(
                    tuple_(table.c.year, table.c.month, table.c.barcode).in_(without_pdv),
                    table.c.pdv_code.is_(None),
                )
            )
        stmt = delete(table).where(or_(*conditions))
        with _store_errors(f"Delete of {len(keys)} sales keys"):
            result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount

    def delete_matching(self, sales_filter: SalesFilter, limit: int) -> int:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        table = sales_record_table
        conditions = _filter_conditions(sales_filter)
        if not conditions:
            raise ValueError("Refusing to delete without at least one filter criterion")
        doomed = select(table.c.id).where(*conditions).limit(limit)
        stmt = delete(table).where(table.c.id.in_(doomed))
        with _store_errors(f"Delete of sales matching {sales_filter.describe()}"):
            result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount


def _update_values(record: SalesRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "reference_entity_id": record.reference_entity_id,
        "day": record.day,
        "pdv_name": record.pdv_name,
        "brand": record.brand,
        "description": record.description,
        "city": record.city,
        "units_sold": record.units_sold,
        "value_sold": record.value_sold,
        "stock_units": record.stock_units,
        "stock_value": record.stock_value,
        "catalog_code": record.catalog_code,
    }


def _filter_conditions(sales_filter: SalesFilter) -> list[ColumnElement[bool]]:
    table = sales_record_table
    conditions: list[ColumnElement[bool]] = []
    if sales_filter.year is not None:
        conditions.append(table.c.year == sales_filter.year)
    if sales_filter.month is not None:
        conditions.append(table.c.month == sales_filter.month)
    if sales_filter.brand is not None:
        conditions.append(table.c.brand == sales_filter.brand)
    if sales_filter.pdv_code is not None:
        conditions.append(table.c.pdv_code == sales_filter.pdv_code)
    return conditions
