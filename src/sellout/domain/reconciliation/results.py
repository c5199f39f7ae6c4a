"""Result and report types returned by reconciliation, ingestion and deletion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sellout.domain.errors import ErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterable

ENTITY_UNRESOLVED = "entity unresolved"
NOT_IN_CATALOG = "not found in catalog"
ENTITY_CONFLICT = "entity creation conflict"
BUSINESS_KEY_CONFLICT = "business key conflict"


@dataclass(frozen=True, slots=True)
class Incident:
    """One omitted row, with the reason an operator needs to fix the source data."""

    row_number: int
    code: str | None
    reason: str
    kind: ErrorKind

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "code": self.code,
            "reason": self.reason,
            "kind": str(self.kind),
        }


@dataclass(frozen=True, slots=True)
class RowDetail:
    """Per-row summary of a written sales record."""

    row_number: int
    barcode: str
    pdv_code: str | None
    units_sold: float
    value_sold: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "barcode": self.barcode,
            "pdv_code": self.pdv_code,
            "units_sold": self.units_sold,
            "value_sold": self.value_sold,
        }


@dataclass(slots=True)
class ReconcileResult:
    """Counts and incidents for one reconciled chunk."""

    inserted: int = 0
    updated: int = 0
    omitted: int = 0
    superseded: int = 0
    incidents: list[Incident] = field(default_factory=list[Incident])
    codes_touched: set[str] = field(default_factory=set[str])
    inserted_rows: list[RowDetail] = field(default_factory=list[RowDetail])
    updated_rows: list[RowDetail] = field(default_factory=list[RowDetail])

    def omit(self, incident: Incident) -> None:
        self.omitted += 1
        self.incidents.append(incident)


@dataclass(slots=True)
class IngestionReport:
    """Aggregated outcome of one ingestion run.

    A failed report still reflects every chunk committed before the failure; those
    chunks stay in the store because re-ingesting the same input is idempotent.
    """

    source_name: str | None = None
    rows_read: int = 0
    rows_insertable: int = 0
    inserted: int = 0
    updated: int = 0
    omitted: int = 0
    superseded: int = 0
    chunks_processed: int = 0
    incidents: list[Incident] = field(default_factory=list[Incident])
    codes_touched: set[str] = field(default_factory=set[str])
    inserted_rows: list[RowDetail] = field(default_factory=list[RowDetail])
    updated_rows: list[RowDetail] = field(default_factory=list[RowDetail])
    failed: bool = False
    failure_kind: ErrorKind | None = None
    failure_message: str | None = None

    def absorb(self, result: ReconcileResult) -> None:
        self.inserted += result.inserted
        self.updated += result.updated
        self.omitted += result.omitted
        self.superseded += result.superseded
        self.incidents.extend(result.incidents)
        self.codes_touched.update(result.codes_touched)
        self.inserted_rows.extend(result.inserted_rows)
        self.updated_rows.extend(result.updated_rows)
        self.chunks_processed += 1

    def fail(self, kind: ErrorKind, message: str) -> None:
        self.failed = True
        self.failure_kind = kind
        self.failure_message = message

    @property
    def sorted_codes(self) -> list[str]:
        return sorted(self.codes_touched)

    def to_dict(self, *, include_details: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "source": self.source_name,
            "rows_read": self.rows_read,
            "rows_insertable": self.rows_insertable,
            "inserted": self.inserted,
            "updated": self.updated,
            "omitted": self.omitted,
            "superseded": self.superseded,
            "chunks_processed": self.chunks_processed,
            "incidents": [incident.to_dict() for incident in self.incidents],
            "codes_touched": self.sorted_codes,
            "failed": self.failed,
            "failure_kind": str(self.failure_kind) if self.failure_kind else None,
            "failure_message": self.failure_message,
        }
        if include_details:
            payload["inserted_rows"] = _details(self.inserted_rows)
            payload["updated_rows"] = _details(self.updated_rows)
        return payload


@dataclass(frozen=True, slots=True)
class DeletionResult:
    deleted: int
    statements: int
    requested: int | None
    processed: int
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "deleted": self.deleted,
            "statements": self.statements,
            "requested": self.requested,
            "processed": self.processed,
            "summary": self.summary,
        }


def _details(rows: Iterable[RowDetail]) -> list[dict[str, Any]]:
    return [row.to_dict() for row in rows]
