"""Ports for the stores the reconciliation engine reads and writes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sellout.domain.model import (
        BusinessKey,
        DeleteKey,
        ReferenceEntity,
        ReferenceKey,
        SalesFilter,
        SalesRecord,
    )


@dataclass(frozen=True, slots=True)
class ExistingSalesQuery:
    """Candidate sets describing which stored sales records a chunk may touch."""

    entity_ids: frozenset[UUID] = field(default_factory=frozenset[UUID])
    years: frozenset[int] = field(default_factory=frozenset[int])
    months: frozenset[int] = field(default_factory=frozenset[int])
    barcodes: frozenset[str] = field(default_factory=frozenset[str])
    pdv_codes: frozenset[str] = field(default_factory=frozenset[str])

    @classmethod
    def for_keys(cls, keys: Collection[BusinessKey]) -> ExistingSalesQuery:
        return cls(
            entity_ids=frozenset(key.entity_id for key in keys),
            years=frozenset(key.year for key in keys),
            months=frozenset(key.month for key in keys),
            barcodes=frozenset(key.barcode for key in keys),
            pdv_codes=frozenset(key.pdv_code for key in keys if key.pdv_code is not None),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.entity_ids and self.years and self.months and self.barcodes)


@runtime_checkable
class ReferenceEntityRepository(Protocol):
    """Persistence contract for parent (customer) entities."""

    def find_by_keys(
        self, keys: Collection[ReferenceKey]
    ) -> dict[ReferenceKey, ReferenceEntity]:
        """Return stored entities matching the normalized (code, name) pairs."""
        ...

    def find_by_codes(self, codes: Collection[str]) -> dict[str, ReferenceEntity]:
        """Return one stored entity per normalized code (smallest normalized name)."""
        ...

    def create(self, entity: ReferenceEntity) -> None:
        """Persist ``entity``; raise ``EntityConflictError`` if the pair already exists."""
        ...


@runtime_checkable
class CatalogLookup(Protocol):
    """Read-only bulk query against the externally owned product catalog."""

    def lookup_by_barcodes(self, barcodes: Collection[str]) -> dict[str, str]: ...


@runtime_checkable
class SalesRecordRepository(Protocol):
    """Persistence contract for sales records."""

    def find_existing(self, query: ExistingSalesQuery) -> dict[BusinessKey, UUID]:
        """Map business keys of stored records matching ``query`` to their ids."""
        ...

    def insert_batch(self, records: Sequence[SalesRecord]) -> None:
        """Insert ``records`` atomically; raise ``EntityConflictError`` on a key clash."""
        ...

    def update_batch(self, records: Sequence[SalesRecord]) -> None:
        """Overwrite stored rows by id with the values carried by ``records``."""
        ...

    def delete_by_keys(self, keys: Sequence[DeleteKey]) -> int:
        """Delete rows matching any of ``keys`` in a single statement."""
        ...

    def delete_matching(self, sales_filter: SalesFilter, limit: int) -> int:
        """Delete at most ``limit`` rows matching ``sales_filter`` in a single statement."""
        ...
