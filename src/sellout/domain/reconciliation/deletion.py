"""Bulk deletion of sales records under the store's bound-parameter ceiling.

Two entry points:
- ``delete_by_keys`` removes rows matching explicit (year, month, barcode, PDV) keys.
  The key list is capped, split into statements of at most
  ``delete_rows_per_statement`` rows and executed in one transaction: either every
  statement of the invocation commits or none does.
- ``delete_by_filter`` drains the rows matching a filter with repeated capped deletes,
  each round in its own transaction, so no single statement holds locks for an
  unpredictable duration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sellout.domain.model import DeleteKey

from .partition import partition
from .results import DeletionResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sellout.config import IngestConfig
    from sellout.domain.model import SalesFilter
    from sellout.domain.ports import IngestUnitOfWork

log = logging.getLogger(__name__)


class BulkDeleteEngine:
    def __init__(
        self,
        unit_of_work_factory: Callable[[], IngestUnitOfWork],
        config: IngestConfig,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._config = config

    def delete_by_keys(
        self,
        keys: Sequence[DeleteKey],
        *,
        target_max: int | None = None,
    ) -> DeletionResult:
        cap = self._config.delete_target_max if target_max is None else target_max
        if cap <= 0:
            raise ValueError(f"target_max must be positive, got {cap}")
        selected = list(dict.fromkeys(keys))[:cap]
        if not selected:
            return DeletionResult(
                deleted=0,
                statements=0,
                requested=len(keys),
                processed=0,
                summary="No keys to delete",
            )

        deleted = 0
        statements = 0
        with self._uow_factory() as uow:
            sales = uow.repositories.sales
            for batch in partition(
                selected,
                DeleteKey.PARAMS_PER_ROW,
                self._config.parameter_ceiling,
                max_rows=self._config.delete_rows_per_statement,
            ):
                deleted += sales.delete_by_keys(batch)
                statements += 1
            uow.commit()

        summary = (
            f"Deleted {deleted} rows for {len(selected)} of {len(keys)} keys "
            f"in {statements} statements"
        )
        log.info(summary)
        return DeletionResult(
            deleted=deleted,
            statements=statements,
            requested=len(keys),
            processed=len(selected),
            summary=summary,
        )

    def delete_by_filter(
        self,
        sales_filter: SalesFilter,
        *,
        round_size: int | None = None,
        max_total: int | None = None,
    ) -> DeletionResult:
        if sales_filter.is_empty:
            raise ValueError("Refusing to delete without at least one filter criterion")
        per_round = self._config.delete_round_size if round_size is None else round_size
        if per_round <= 0:
            raise ValueError(f"round_size must be positive, got {per_round}")
        if max_total is not None and max_total <= 0:
            raise ValueError(f"max_total must be positive, got {max_total}")

        deleted = 0
        rounds = 0
        while True:
            limit = per_round if max_total is None else min(per_round, max_total - deleted)
            if limit <= 0:
                break
            with self._uow_factory() as uow:
                affected = uow.repositories.sales.delete_matching(sales_filter, limit)
                uow.commit()
            rounds += 1
            deleted += affected
            log.info(
                "Delete round %d (%s): %d rows, %d total",
                rounds,
                sales_filter.describe(),
                affected,
                deleted,
            )
            if affected < limit:
                break

        summary = f"Deleted {deleted} rows matching {sales_filter.describe()} in {rounds} rounds"
        log.info(summary)
        return DeletionResult(
            deleted=deleted,
            statements=rounds,
            requested=max_total,
            processed=deleted,
            summary=summary,
        )
