"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from sellout.adapters.jsonl import read_delete_keys, read_rows
from sellout.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    is_started,
    startup,
)
from sellout.config import get_ingest_config
from sellout.domain.ingest_pipeline import IngestionOrchestrator
from sellout.domain.model import SalesFilter
from sellout.domain.ports.unit_of_work import IngestUnitOfWork
from sellout.domain.reconciliation import BulkDeleteEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from sellout.config import IngestConfig
    from sellout.domain.model import DeleteKey, RowRecord
    from sellout.domain.reconciliation import DeletionResult, IngestionReport

UnitOfWorkFactory = Callable[[], IngestUnitOfWork]


log = getLogger(__name__)


def _resolve_factory(
    unit_of_work_factory: UnitOfWorkFactory | None,
    config: IngestConfig,
) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return partial(SqlAlchemyIngestUnitOfWork, config)


def ingest_sales_rows(
    rows: Iterable[RowRecord | None],
    *,
    source_name: str | None = None,
    collect_details: bool = False,
    config: IngestConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> IngestionReport:
    """Reconcile ``rows`` against the store and return the ingestion report."""

    effective_config = config or get_ingest_config()
    factory = _resolve_factory(unit_of_work_factory, effective_config)
    log.info(
        "Starting ingestion of %s: chunk_size=%s, batch_size=%s",
        source_name or "<stream>",
        effective_config.chunk_size,
        effective_config.batch_size,
    )
    orchestrator = IngestionOrchestrator(factory, effective_config)
    return orchestrator.run(rows, source_name=source_name, collect_details=collect_details)


def ingest_sales_file(
    path: Path,
    *,
    collect_details: bool = False,
    config: IngestConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> IngestionReport:
    """Reconcile the JSON-lines rows stored at ``path``."""

    return ingest_sales_rows(
        read_rows(path),
        source_name=path.name,
        collect_details=collect_details,
        config=config,
        unit_of_work_factory=unit_of_work_factory,
    )


def delete_sales_by_keys(
    keys: Sequence[DeleteKey],
    *,
    target_max: int | None = None,
    config: IngestConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DeletionResult:
    """Delete the sales rows matching ``keys``, all or nothing."""

    effective_config = config or get_ingest_config()
    factory = _resolve_factory(unit_of_work_factory, effective_config)
    engine = BulkDeleteEngine(factory, effective_config)
    return engine.delete_by_keys(keys, target_max=target_max)


def delete_sales_by_keys_file(
    path: Path,
    *,
    target_max: int | None = None,
    config: IngestConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DeletionResult:
    return delete_sales_by_keys(
        read_delete_keys(path),
        target_max=target_max,
        config=config,
        unit_of_work_factory=unit_of_work_factory,
    )


def delete_sales_by_filter(
    *,
    year: int | None = None,
    month: int | None = None,
    brand: str | None = None,
    pdv_code: str | None = None,
    round_size: int | None = None,
    max_total: int | None = None,
    config: IngestConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DeletionResult:
    """Drain the sales rows matching the filter in capped rounds."""

    sales_filter = SalesFilter(year=year, month=month, brand=brand, pdv_code=pdv_code)
    if sales_filter.is_empty:
        raise ValueError("At least one of year, month, brand or pdv_code is required")
    effective_config = config or get_ingest_config()
    factory = _resolve_factory(unit_of_work_factory, effective_config)
    engine = BulkDeleteEngine(factory, effective_config)
    return engine.delete_by_filter(sales_filter, round_size=round_size, max_total=max_total)
