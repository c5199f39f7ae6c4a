from __future__ import annotations

from sellout.domain.reconciliation import CatalogValidator
from tests.helpers.sales import FakeCatalogLookup


def test_known_barcodes_map_to_smallest_catalog_code() -> None:
    lookup = FakeCatalogLookup(codes_by_barcode={"111": ["CAT-B", "CAT-A"], "222": ["CAT-C"]})
    validator = CatalogValidator(lookup, {}, in_limit=1000, parameter_ceiling=2100)

    assert validator.validate(["111", " 222 ", "333"]) == {"111": "CAT-A", "222": "CAT-C"}


def test_hits_and_misses_are_cached_for_the_run() -> None:
    lookup = FakeCatalogLookup(codes_by_barcode={"111": ["CAT-A"]})
    cache: dict[str, str | None] = {}
    validator = CatalogValidator(lookup, cache, in_limit=1000, parameter_ceiling=2100)

    validator.validate(["111", "333"])
    validator.validate(["111", "333", "444"])

    assert lookup.calls == [["111", "333"], ["444"]]
    assert cache == {"111": "CAT-A", "333": None, "444": None}


def test_lookup_is_batched_by_in_limit() -> None:
    lookup = FakeCatalogLookup()
    validator = CatalogValidator(lookup, {}, in_limit=2, parameter_ceiling=2100)

    validator.validate(["1", "2", "3", "4", "5"])

    assert [len(call) for call in lookup.calls] == [2, 2, 1]


def test_blank_barcodes_are_ignored() -> None:
    lookup = FakeCatalogLookup()
    validator = CatalogValidator(lookup, {}, in_limit=10, parameter_ceiling=2100)

    assert validator.validate(["", "   "]) == {}
    assert lookup.calls == []
