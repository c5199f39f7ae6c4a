"""Chunk reconciliation: classify rows as inserts or updates and persist them.

Responsibilities of this stage:
- omit rows whose parent entity or barcode could not be resolved
- collapse rows sharing a business key (the later row in file order wins)
- fetch the existing records of the chunk once and classify every pending write
- persist inserts then updates in sub-batches, checkpointing after each

Out of scope for this stage:
- entity resolution and catalog lookups (see ``resolve`` and ``catalog``)
- commit/rollback of the chunk transaction
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sellout.domain.errors import EntityConflictError, ErrorKind
from sellout.domain.model import BusinessKey, SalesRecord
from sellout.domain.ports import ExistingSalesQuery

from .partition import batched
from .results import (
    BUSINESS_KEY_CONFLICT,
    ENTITY_CONFLICT,
    ENTITY_UNRESOLVED,
    NOT_IN_CATALOG,
    Incident,
    ReconcileResult,
    RowDetail,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from sellout.domain.model import ReferenceEntity, RowRecord
    from sellout.domain.ports import IngestUnitOfWork

    from .resolve import EntityResolution

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _PendingWrite:
    row: RowRecord
    entity: ReferenceEntity
    catalog_code: str
    key: BusinessKey

    def build_record(self, *, record_id: UUID | None = None) -> SalesRecord:
        row = self.row
        record = SalesRecord(
            reference_entity_id=self.entity.id,
            year=self.key.year,
            month=self.key.month,
            day=self.key.day,
            barcode=self.key.barcode,
            pdv_code=self.key.pdv_code,
            pdv_name=row.pdv_name,
            brand=row.brand,
            description=row.description,
            city=row.city,
            units_sold=_measure(row.units_sold),
            value_sold=_measure(row.value_sold),
            stock_units=_measure(row.stock_units),
            stock_value=0.0,
            catalog_code=self.catalog_code,
        )
        if record_id is not None:
            record.id = record_id
        return record

    def detail(self, record: SalesRecord) -> RowDetail:
        return RowDetail(
            row_number=self.row.row_number,
            barcode=record.barcode,
            pdv_code=record.pdv_code,
            units_sold=record.units_sold,
            value_sold=record.value_sold,
        )


class ChunkReconciler:
    """Reconcile one chunk of rows inside the caller's unit of work.

    Per-row details are only kept when ``collect_details`` is set; otherwise the
    result holds counts, incidents and touched barcodes only.
    """

    def __init__(
        self, uow: IngestUnitOfWork, *, batch_size: int, collect_details: bool = False
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._uow = uow
        self._batch_size = batch_size
        self._collect_details = collect_details

    def reconcile(
        self,
        chunk: Sequence[RowRecord],
        resolution: EntityResolution,
        catalog_map: Mapping[str, str],
    ) -> ReconcileResult:
        result = ReconcileResult()
        pending = self._collect_pending(chunk, resolution, catalog_map, result)
        if not pending:
            return result

        sales = self._uow.repositories.sales
        existing = sales.find_existing(ExistingSalesQuery.for_keys(pending.keys()))

        inserts: list[_PendingWrite] = []
        updates: list[tuple[_PendingWrite, UUID]] = []
        for key, write in pending.items():
            record_id = existing.get(key)
            if record_id is None:
                inserts.append(write)
            else:
                updates.append((write, record_id))

        self._persist_inserts(inserts, result)
        self._persist_updates(updates, result)
        log.debug(
            "Reconciled chunk: %d inserted, %d updated, %d omitted, %d superseded",
            result.inserted,
            result.updated,
            result.omitted,
            result.superseded,
        )
        return result

    def _collect_pending(
        self,
        chunk: Sequence[RowRecord],
        resolution: EntityResolution,
        catalog_map: Mapping[str, str],
        result: ReconcileResult,
    ) -> dict[BusinessKey, _PendingWrite]:
        pending: dict[BusinessKey, _PendingWrite] = {}
        for row in chunk:
            pair = row.reference_pair
            entity = resolution.entity_for(pair)
            if entity is None:
                conflict = resolution.conflict_for(pair)
                result.omit(
                    Incident(
                        row_number=row.row_number,
                        code=row.entity_code,
                        reason=ENTITY_UNRESOLVED if conflict is None else ENTITY_CONFLICT,
                        kind=(
                            ErrorKind.UNRESOLVED_ENTITY
                            if conflict is None
                            else ErrorKind.STORE_CONFLICT
                        ),
                    )
                )
                continue

            barcode = (row.barcode or "").strip()
            catalog_code = catalog_map.get(barcode)
            if catalog_code is None:
                result.omit(
                    Incident(
                        row_number=row.row_number,
                        code=barcode or None,
                        reason=NOT_IN_CATALOG,
                        kind=ErrorKind.CATALOG_MISS,
                    )
                )
                continue

            key = BusinessKey.build(
                entity_id=entity.id,
                year=row.year,
                month=row.month,
                day=row.day,
                barcode=barcode,
                pdv_code=row.pdv_code,
            )
            if key in pending:
                result.superseded += 1
                log.debug(
                    "Row %d supersedes row %d for %s",
                    row.row_number,
                    pending[key].row.row_number,
                    key,
                )
            pending[key] = _PendingWrite(row=row, entity=entity, catalog_code=catalog_code, key=key)
        return pending

    def _persist_inserts(self, inserts: list[_PendingWrite], result: ReconcileResult) -> None:
        sales = self._uow.repositories.sales
        for batch in batched(inserts, self._batch_size):
            records = [write.build_record() for write in batch]
            try:
                sales.insert_batch(records)
            except EntityConflictError:
                log.warning(
                    "Insert batch of %d rows hit an existing business key; retrying row by row",
                    len(records),
                )
                self._insert_one_by_one(batch, result)
            else:
                for write, record in zip(batch, records, strict=True):
                    self._record(write, record, result, result.inserted_rows)
                result.inserted += len(records)
            self._uow.checkpoint()

    def _insert_one_by_one(self, batch: list[_PendingWrite], result: ReconcileResult) -> None:
        sales = self._uow.repositories.sales
        for write in batch:
            record = write.build_record()
            try:
                sales.insert_batch([record])
            except EntityConflictError:
                result.omit(
                    Incident(
                        row_number=write.row.row_number,
                        code=write.key.barcode,
                        reason=BUSINESS_KEY_CONFLICT,
                        kind=ErrorKind.STORE_CONFLICT,
                    )
                )
                continue
            self._record(write, record, result, result.inserted_rows)
            result.inserted += 1

    def _persist_updates(
        self, updates: list[tuple[_PendingWrite, UUID]], result: ReconcileResult
    ) -> None:
        sales = self._uow.repositories.sales
        for batch in batched(updates, self._batch_size):
            records = [write.build_record(record_id=record_id) for write, record_id in batch]
            sales.update_batch(records)
            for (write, _), record in zip(batch, records, strict=True):
                self._record(write, record, result, result.updated_rows)
            result.updated += len(records)
            self._uow.checkpoint()

    def _record(
        self,
        write: _PendingWrite,
        record: SalesRecord,
        result: ReconcileResult,
        details: list[RowDetail],
    ) -> None:
        result.codes_touched.add(record.barcode)
        if self._collect_details:
            details.append(write.detail(record))


def _measure(value: float | None) -> float:
    return 0.0 if value is None else float(value)
