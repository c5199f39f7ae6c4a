"""Value objects used to match rows against stored records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True, slots=True)
class ReferenceKey:
    """Normalized (code, name) pair; ``name`` is ``None`` for code-only lookups."""

    code: str
    name: str | None = None

    @property
    def is_code_only(self) -> bool:
        return self.name is None


@dataclass(frozen=True, slots=True)
class BusinessKey:
    """(entity, year, month, day, barcode, PDV code): at most one sales record each."""

    entity_id: UUID
    year: int
    month: int
    day: int
    barcode: str
    pdv_code: str | None

    @classmethod
    def build(
        cls,
        *,
        entity_id: UUID,
        year: int,
        month: int,
        day: int,
        barcode: str,
        pdv_code: str | None,
    ) -> BusinessKey:
        return cls(
            entity_id=entity_id,
            year=year,
            month=month,
            day=day,
            barcode=barcode.strip(),
            pdv_code=blank_to_none(pdv_code),
        )


@dataclass(frozen=True, slots=True)
class DeleteKey:
    """Selection key used by bulk deletion: four bound values per row."""

    year: int
    month: int
    barcode: str
    pdv_code: str | None = None

    PARAMS_PER_ROW = 4

    def __post_init__(self) -> None:
        object.__setattr__(self, "barcode", self.barcode.strip())
        object.__setattr__(self, "pdv_code", blank_to_none(self.pdv_code))


@dataclass(frozen=True, slots=True)
class SalesFilter:
    """Conjunction of optional criteria for filter-based deletion."""

    year: int | None = None
    month: int | None = None
    brand: str | None = None
    pdv_code: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "brand", blank_to_none(self.brand))
        object.__setattr__(self, "pdv_code", blank_to_none(self.pdv_code))

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in (self.year, self.month, self.brand, self.pdv_code))

    def describe(self) -> str:
        parts = [
            f"{name}={value}"
            for name, value in (
                ("year", self.year),
                ("month", self.month),
                ("brand", self.brand),
                ("pdv_code", self.pdv_code),
            )
            if value is not None
        ]
        return ", ".join(parts) or "<no filter>"
