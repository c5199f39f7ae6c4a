"""Translate JSON-lines payloads into domain values."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sellout.domain.model import DeleteKey, RowRecord

if TYPE_CHECKING:
    from .schema import DeleteKeyPayload, RowPayload


def translate_row(payload: RowPayload, *, line_number: int) -> RowRecord:
    """Build a ``RowRecord``; the payload's ``row`` wins over the line number."""

    return RowRecord(
        row_number=payload.row or line_number,
        entity_code=payload.entity_code,
        entity_name=payload.entity_name,
        sale_date=payload.sale_date,
        barcode=payload.barcode,
        description=payload.description,
        brand=payload.brand,
        pdv_code=payload.pdv_code,
        pdv_name=payload.pdv_name,
        city=payload.city,
        units_sold=payload.units_sold,
        value_sold=payload.value_sold,
        stock_units=payload.stock_units,
    )


def translate_delete_key(payload: DeleteKeyPayload) -> DeleteKey:
    return DeleteKey(
        year=payload.year,
        month=payload.month,
        barcode=payload.barcode,
        pdv_code=payload.pdv_code,
    )
