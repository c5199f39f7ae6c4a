"""Pydantic models describing JSON-lines sales rows and delete keys."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class SelloutBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RowPayload(SelloutBaseModel):
    """One normalized sell-out row.

    The sale date is given either as ``date`` (ISO format) or as separate ``year``,
    ``month`` and ``day`` fields.
    """

    row: int | None = Field(default=None, ge=1)
    entity_code: str | None = None
    entity_name: str | None = None
    sale_date: dt.date | None = Field(default=None, alias="date")
    year: int | None = None
    month: int | None = None
    day: int | None = None
    barcode: str | None = None
    description: str | None = None
    brand: str | None = None
    pdv_code: str | None = None
    pdv_name: str | None = None
    city: str | None = None
    units_sold: float | None = None
    value_sold: float | None = None
    stock_units: float | None = None

    _normalize_text = field_validator(
        "entity_code",
        "entity_name",
        "barcode",
        "description",
        "brand",
        "pdv_code",
        "pdv_name",
        "city",
        mode="before",
    )(_blank_to_none)

    @field_validator("sale_date", mode="before")
    @classmethod
    def _blank_date(cls, value: object) -> object:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _assemble_date(self) -> RowPayload:
        if self.sale_date is not None:
            return self
        parts = (self.year, self.month, self.day)
        if all(part is None for part in parts):
            return self
        if any(part is None for part in parts):
            raise ValueError("year, month and day must be given together")
        self.sale_date = dt.date(self.year, self.month, self.day)  # type: ignore[arg-type]
        return self


class DeleteKeyPayload(SelloutBaseModel):
    year: int = Field(ge=1)
    month: int = Field(ge=1, le=12)
    barcode: str = Field(min_length=1)
    pdv_code: str | None = None

    _normalize_pdv = field_validator("pdv_code", mode="before")(_blank_to_none)

    @field_validator("barcode", mode="before")
    @classmethod
    def _strip_barcode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value
