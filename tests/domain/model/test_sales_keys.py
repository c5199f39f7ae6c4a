from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from sellout.domain.errors import (
    EntityConflictError,
    ErrorKind,
    MalformedInputError,
    StoreUnavailableError,
)
from sellout.domain.model import BusinessKey, DeleteKey, SalesFilter, SalesRecord
from tests.helpers.sales import make_row


def test_business_key_normalizes_barcode_and_blank_pdv() -> None:
    entity_id = uuid4()
    key = BusinessKey.build(
        entity_id=entity_id, year=2024, month=3, day=1, barcode=" 123 ", pdv_code="   "
    )

    assert key == BusinessKey(
        entity_id=entity_id, year=2024, month=3, day=1, barcode="123", pdv_code=None
    )


def test_sales_record_exposes_its_business_key() -> None:
    record = SalesRecord(
        reference_entity_id=uuid4(), year=2024, month=3, day=9, barcode="123", pdv_code="P1"
    )

    assert record.business_key.day == 9
    assert record.business_key.pdv_code == "P1"


def test_delete_key_treats_blank_pdv_as_null() -> None:
    assert DeleteKey(year=2024, month=3, barcode="123 ", pdv_code=" ") == DeleteKey(
        year=2024, month=3, barcode="123"
    )


def test_sales_filter_emptiness_and_description() -> None:
    assert SalesFilter().is_empty
    assert SalesFilter(brand="   ").is_empty
    assert SalesFilter(year=2024, brand="ACME").describe() == "year=2024, brand=ACME"


def test_row_record_date_parts_and_blankness() -> None:
    row = make_row(3, sale_date=date(2024, 2, 29))

    assert (row.year, row.month, row.day) == (2024, 2, 29)
    assert not row.is_blank
    assert make_row(4, code=" ", name="").is_blank


def test_row_record_without_date_refuses_date_parts() -> None:
    with pytest.raises(ValueError, match="no sale date"):
        _ = make_row(8, sale_date=None).year


def test_error_kinds_separate_recoverable_from_fatal() -> None:
    assert EntityConflictError("x").kind.is_recoverable
    assert not StoreUnavailableError("x").kind.is_recoverable
    assert MalformedInputError("x", row_number=4).kind is ErrorKind.MALFORMED_INPUT
    assert ErrorKind.CATALOG_MISS.is_recoverable
