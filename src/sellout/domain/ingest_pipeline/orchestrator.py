"""Drive a stream of rows through fixed-size chunks and aggregate one report."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from sellout.domain.errors import MalformedInputError, SelloutError
from sellout.domain.model import RowRecord
from sellout.domain.reconciliation import (
    CatalogValidator,
    ChunkReconciler,
    IngestionReport,
    ReferenceResolver,
)

from .context import RunContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from sellout.config import IngestConfig
    from sellout.domain.ports import IngestUnitOfWork
    from sellout.domain.reconciliation import ReconcileResult

log = logging.getLogger(__name__)

# Consecutive structurally empty rows that mark the end of the data.
END_OF_DATA_BLANK_ROWS = 2


class RunState(StrEnum):
    IDLE = "idle"
    READING = "reading"
    RESOLVING_ENTITIES = "resolving-entities"
    VALIDATING_CODES = "validating-codes"
    RECONCILING = "reconciling"
    REPORTING = "reporting"


class IngestionOrchestrator:
    """Reconcile rows chunk by chunk, one unit of work (and commit) per chunk.

    Chunks are processed strictly in order. A chunk that fails on a store round-trip
    is rolled back and stops the run; chunks committed before it stay committed. A
    malformed row stops the run before its chunk is processed. Either way the report
    is returned with ``failed`` set rather than the error being raised.

    Per-row insert and update details grow with the input, so they are only kept
    when ``run`` is called with ``collect_details=True``.
    """

    def __init__(
        self,
        unit_of_work_factory: Callable[[], IngestUnitOfWork],
        config: IngestConfig,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._config = config
        self.state = RunState.IDLE

    def run(
        self,
        rows: Iterable[RowRecord | None],
        *,
        source_name: str | None = None,
        collect_details: bool = False,
    ) -> IngestionReport:
        context = RunContext(config=self._config, source_name=source_name)
        report = IngestionReport(source_name=source_name)
        self.state = RunState.READING
        try:
            for index, chunk in enumerate(self._chunks(rows, report), start=1):
                log.info("Processing chunk %d (%d rows)", index, len(chunk))
                try:
                    result = self._process_chunk(chunk, context, collect_details=collect_details)
                except SelloutError as exc:
                    log.exception("Chunk %d failed; stopping run", index)
                    report.fail(exc.kind, str(exc))
                    break
                report.absorb(result)
                self.state = RunState.READING
        except MalformedInputError as exc:
            log.error("Malformed input stopped the run: %s", exc)  # noqa: TRY400
            report.fail(exc.kind, str(exc))
        finally:
            self.state = RunState.REPORTING
            context.clear()

        log.info(
            "Run %s finished: read=%d inserted=%d updated=%d omitted=%d failed=%s",
            source_name or "<stream>",
            report.rows_read,
            report.inserted,
            report.updated,
            report.omitted,
            report.failed,
        )
        self.state = RunState.IDLE
        return report

    def _chunks(
        self, rows: Iterable[RowRecord | None], report: IngestionReport
    ) -> Iterator[list[RowRecord]]:
        chunk: list[RowRecord] = []
        blank_streak = 0
        for row in rows:
            report.rows_read += 1
            if row is None or (isinstance(row, RowRecord) and row.is_blank):
                blank_streak += 1
                if blank_streak >= END_OF_DATA_BLANK_ROWS:
                    log.info("Reached end of data after row %d", report.rows_read)
                    break
                continue
            blank_streak = 0
            _check_row(row)
            report.rows_insertable += 1
            chunk.append(row)
            if len(chunk) >= self._config.chunk_size:
                yield chunk
                chunk = []
        if chunk:
            yield chunk

    def _process_chunk(
        self, chunk: list[RowRecord], context: RunContext, *, collect_details: bool
    ) -> ReconcileResult:
        config = context.config
        with self._uow_factory() as uow:
            repositories = uow.repositories

            self.state = RunState.RESOLVING_ENTITIES
            resolver = ReferenceResolver(
                repositories.references,
                context.entity_cache,
                in_limit=config.in_limit,
                parameter_ceiling=config.parameter_ceiling,
            )
            resolution = resolver.resolve(row.reference_pair for row in chunk)

            self.state = RunState.VALIDATING_CODES
            validator = CatalogValidator(
                repositories.catalog,
                context.catalog_cache,
                in_limit=config.in_limit,
                parameter_ceiling=config.parameter_ceiling,
            )
            catalog_map = validator.validate(row.barcode for row in chunk if row.barcode)

            self.state = RunState.RECONCILING
            reconciler = ChunkReconciler(
                uow, batch_size=config.batch_size, collect_details=collect_details
            )
            result = reconciler.reconcile(chunk, resolution, catalog_map)
            uow.commit()
        return result


def _check_row(row: object) -> None:
    if not isinstance(row, RowRecord):
        raise MalformedInputError(f"Expected a RowRecord, got {type(row).__name__}")
    if row.row_number <= 0:
        raise MalformedInputError(
            f"Row numbers must be positive, got {row.row_number}", row_number=row.row_number
        )
    if row.sale_date is None:
        raise MalformedInputError(
            f"Row {row.row_number} has no sale date", row_number=row.row_number
        )
