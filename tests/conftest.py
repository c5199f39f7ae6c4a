from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import insert
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from sellout.adapters.sqlalchemy import (
    SqlAlchemyIngestUnitOfWork,
    build_engine,
    catalog_product_table,
    shutdown,
    start_mappers,
    startup,
)
from sellout.adapters.sqlalchemy.migrations import upgrade_head
from sellout.config import IngestConfig
from sellout.domain.model import new_id

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'sellout.db'}")
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ingest_config() -> IngestConfig:
    return IngestConfig()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
    ingest_config: IngestConfig,
) -> Iterator[Callable[[], SqlAlchemyIngestUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyIngestUnitOfWork:
        return SqlAlchemyIngestUnitOfWork(ingest_config)

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def seed_catalog(sqlite_engine: Engine) -> Callable[..., None]:
    """Insert (barcode, catalog code) pairs into the read-only catalog table."""

    def seed(*pairs: tuple[str, str]) -> None:
        with sqlite_engine.begin() as connection:
            connection.execute(
                insert(catalog_product_table),
                [
                    {"id": new_id(), "barcode": barcode, "catalog_code": catalog_code}
                    for barcode, catalog_code in pairs
                ],
            )

    return seed
