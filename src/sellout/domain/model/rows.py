"""Normalized spreadsheet rows handed to the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sellout.domain.model.keys import blank_to_none

if TYPE_CHECKING:
    from datetime import date


@dataclass(frozen=True, slots=True, kw_only=True)
class RowRecord:
    """One accepted source row; created by the parser and consumed once."""

    row_number: int
    entity_code: str | None
    entity_name: str | None
    sale_date: date | None
    barcode: str | None
    description: str | None = None
    brand: str | None = None
    pdv_code: str | None = None
    pdv_name: str | None = None
    city: str | None = None
    units_sold: float | None = None
    value_sold: float | None = None
    stock_units: float | None = None

    @property
    def year(self) -> int:
        return self._require_date().year

    @property
    def month(self) -> int:
        return self._require_date().month

    @property
    def day(self) -> int:
        return self._require_date().day

    @property
    def reference_pair(self) -> tuple[str | None, str | None]:
        return (self.entity_code, self.entity_name)

    @property
    def is_blank(self) -> bool:
        """A row without parent code and name is structurally empty."""

        return blank_to_none(self.entity_code) is None and blank_to_none(self.entity_name) is None

    def _require_date(self) -> date:
        if self.sale_date is None:
            raise ValueError(f"Row {self.row_number} has no sale date")
        return self.sale_date
