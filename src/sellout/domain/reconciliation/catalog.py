"""Barcode validation against the external product catalog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .partition import batched

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sellout.domain.ports import CatalogLookup

log = logging.getLogger(__name__)


class CatalogValidator:
    """Return the catalog code for every known barcode of a chunk.

    Hits and misses are both remembered in the run's ``cache`` (``None`` marks a miss),
    so each barcode is queried at most once per run.
    """

    def __init__(
        self,
        lookup: CatalogLookup,
        cache: dict[str, str | None],
        *,
        in_limit: int,
        parameter_ceiling: int,
    ) -> None:
        self._lookup = lookup
        self._cache = cache
        self._batch_size = min(in_limit, parameter_ceiling)

    def validate(self, barcodes: Iterable[str]) -> dict[str, str]:
        wanted = sorted({barcode.strip() for barcode in barcodes if barcode and barcode.strip()})
        pending = [barcode for barcode in wanted if barcode not in self._cache]
        for batch in batched(pending, self._batch_size):
            found = self._lookup.lookup_by_barcodes(batch)
            for barcode in batch:
                self._cache[barcode] = found.get(barcode)
        valid: dict[str, str] = {}
        for barcode in wanted:
            catalog_code = self._cache.get(barcode)
            if catalog_code is not None:
                valid[barcode] = catalog_code
        misses = len(wanted) - len(valid)
        if misses:
            log.debug("%d of %d barcodes are not in the catalog", misses, len(wanted))
        return valid
