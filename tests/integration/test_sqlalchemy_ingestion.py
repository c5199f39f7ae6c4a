from __future__ import annotations

import json
from datetime import date
from functools import partial
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import func, insert, select

from sellout.adapters.sqlalchemy import (
    build_engine,
    catalog_product_table,
    reference_entity_table,
    sales_record_table,
    shutdown,
    startup,
)
from sellout.adapters.sqlalchemy.unit_of_work import SqlAlchemyIngestUnitOfWork
from sellout.app import ingest_sales_rows
from sellout.config import IngestConfig
from sellout.domain.model import new_id
from sellout.domain.reconciliation import NOT_IN_CATALOG
from tests.helpers.sales import DEFAULT_BARCODE, make_row

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from sellout.domain.model import RowRecord

pytestmark = pytest.mark.integration

type UowFactory = Callable[[], SqlAlchemyIngestUnitOfWork]


def _snapshot(engine: Engine) -> list[tuple[Any, ...]]:
    sales = sales_record_table
    entities = reference_entity_table
    stmt = (
        select(
            entities.c.code,
            entities.c.name,
            sales.c.year,
            sales.c.month,
            sales.c.day,
            sales.c.barcode,
            sales.c.pdv_code,
            sales.c.units_sold,
            sales.c.value_sold,
            sales.c.stock_units,
            sales.c.catalog_code,
        )
        .join(entities, entities.c.id == sales.c.reference_entity_id)
        .order_by(
            entities.c.code,
            entities.c.name,
            sales.c.year,
            sales.c.month,
            sales.c.day,
            sales.c.barcode,
            sales.c.pdv_code,
        )
    )
    with engine.connect() as connection:
        return [tuple(row) for row in connection.execute(stmt)]


def _sales_ids(engine: Engine) -> set[Any]:
    with engine.connect() as connection:
        return set(connection.execute(select(sales_record_table.c.id)).scalars())


def _duplicate_business_keys(engine: Engine) -> list[tuple[Any, ...]]:
    sales = sales_record_table
    key_columns = (
        sales.c.reference_entity_id,
        sales.c.year,
        sales.c.month,
        sales.c.day,
        sales.c.barcode,
        sales.c.pdv_code,
    )
    stmt = select(*key_columns).group_by(*key_columns).having(func.count() > 1)
    with engine.connect() as connection:
        return [tuple(row) for row in connection.execute(stmt)]


def _month_of_rows(count: int, *, start: int = 1) -> list[RowRecord]:
    return [
        make_row(
            start + index,
            code=f"C{index % 7:03d}",
            name=f"Customer {index % 7}",
            sale_date=date(2024, 3, 1 + index % 28),
            barcode=f"77{index % 11:04d}",
            pdv_code=f"PDV-{index % 13}",
            units_sold=float(index),
            value_sold=float(index) * 10,
        )
        for index in range(count)
    ]


def _seed_catalog(engine: Engine, pairs: Sequence[tuple[str, str]]) -> None:
    with engine.begin() as connection:
        connection.execute(
            insert(catalog_product_table),
            [
                {"id": new_id(), "barcode": barcode, "catalog_code": catalog_code}
                for barcode, catalog_code in pairs
            ],
        )


def _ingest(
    rows: Sequence[RowRecord | None], factory: UowFactory, *, chunk_size: int = 10_000
) -> Any:
    return ingest_sales_rows(
        rows, config=IngestConfig(chunk_size=chunk_size), unit_of_work_factory=factory
    )


@pytest.fixture
def catalog_barcodes(seed_catalog: Callable[..., None]) -> list[str]:
    barcodes = [DEFAULT_BARCODE, *(f"77{index:04d}" for index in range(11))]
    seed_catalog(*((barcode, f"CAT-{barcode}") for barcode in barcodes))
    return barcodes


@pytest.mark.usefixtures("catalog_barcodes")
def test_reingesting_the_same_rows_is_idempotent(
    sqlite_engine: Engine, sqlite_unit_of_work: UowFactory
) -> None:
    rows = _month_of_rows(300)

    first = _ingest(rows, sqlite_unit_of_work, chunk_size=128)
    after_first = _snapshot(sqlite_engine)
    ids_after_first = _sales_ids(sqlite_engine)
    second = _ingest(rows, sqlite_unit_of_work, chunk_size=128)

    assert first.inserted > 0
    assert (second.inserted, second.updated) == (0, first.inserted)
    assert second.incidents == first.incidents
    assert _snapshot(sqlite_engine) == after_first
    assert _sales_ids(sqlite_engine) == ids_after_first
    assert _duplicate_business_keys(sqlite_engine) == []


@pytest.mark.usefixtures("catalog_barcodes")
def test_same_code_with_different_names_creates_distinct_entities(
    sqlite_engine: Engine, sqlite_unit_of_work: UowFactory
) -> None:
    rows = [
        make_row(1, code="C001", name="Acme Corp"),
        make_row(2, code="c001 ", name="  ACMÉ   corp"),
        make_row(3, code="C001", name="Acme Retail"),
    ]

    report = _ingest(rows, sqlite_unit_of_work)

    with sqlite_engine.connect() as connection:
        stored = connection.execute(
            select(reference_entity_table.c.code, reference_entity_table.c.name).order_by(
                reference_entity_table.c.name_key
            )
        ).all()
    assert [tuple(row) for row in stored] == [("C001", "Acme Corp"), ("C001", "Acme Retail")]
    assert report.inserted == 2
    assert report.superseded == 1


@pytest.mark.usefixtures("catalog_barcodes")
def test_later_row_wins_within_a_chunk(
    sqlite_engine: Engine, sqlite_unit_of_work: UowFactory
) -> None:
    rows = [
        make_row(5, code="X", name="ACME", units_sold=1.0, value_sold=10.0),
        make_row(6, code="Y", name="OTHER"),
        make_row(9, code="X", name="ACME", units_sold=9.0, value_sold=90.0),
    ]

    _ingest(rows, sqlite_unit_of_work)

    acme_rows = [row for row in _snapshot(sqlite_engine) if row[0] == "X"]
    assert len(acme_rows) == 1
    assert acme_rows[0][7:9] == (9.0, 90.0)


@pytest.mark.usefixtures("catalog_barcodes")
def test_barcode_missing_from_catalog_is_an_incident(
    sqlite_engine: Engine, sqlite_unit_of_work: UowFactory
) -> None:
    rows = [make_row(1, barcode="0000000"), make_row(2)]

    report = _ingest(rows, sqlite_unit_of_work)

    [incident] = report.incidents
    assert (incident.row_number, incident.reason) == (1, NOT_IN_CATALOG)
    assert [row[5] for row in _snapshot(sqlite_engine)] == [DEFAULT_BARCODE]
    assert json.loads(json.dumps(report.to_dict(include_details=True)))["inserted"] == 1


def test_chunk_boundaries_do_not_change_the_final_state(tmp_path: Path) -> None:
    rows = [
        make_row(
            index + 1,
            code=f"C{index % 5}",
            name=f"Customer {index % 5}",
            sale_date=date(2024, 1 + index % 12, 1 + index % 28),
            barcode=f"77{index % 11:04d}",
            pdv_code=f"PDV-{index}",
            units_sold=float(index),
        )
        for index in range(2_500)
    ]
    catalog = [(f"77{index:04d}", f"CAT-{index}") for index in range(11)]
    snapshots: list[list[tuple[Any, ...]]] = []

    for chunk_size, name in ((1_000, "chunked.db"), (2_500, "single.db")):
        engine = build_engine(f"sqlite+pysqlite:///{tmp_path / name}")
        startup(engine=engine, force=True)
        try:
            _seed_catalog(engine, catalog)
            config = IngestConfig(chunk_size=chunk_size)
            report = ingest_sales_rows(
                rows,
                config=config,
                unit_of_work_factory=partial(SqlAlchemyIngestUnitOfWork, config),
            )
            assert report.inserted == 2_500
            assert report.chunks_processed == -(-2_500 // chunk_size)
            snapshots.append(_snapshot(engine))
        finally:
            shutdown()

    chunked, single = snapshots
    assert chunked == single
