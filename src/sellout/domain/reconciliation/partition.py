"""Split candidate sets so no statement exceeds the store's bound-parameter ceiling.

Given ``P`` parameters bound per logical row and a ceiling ``C``, a statement may
carry at most ``floor(C / P)`` rows. Callers may cap that further with ``max_rows``
to keep a safety margin below the theoretical maximum.
"""

from __future__ import annotations

from itertools import islice
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


def rows_per_statement(
    max_params_per_row: int,
    ceiling: int,
    *,
    max_rows: int | None = None,
) -> int:
    if max_params_per_row <= 0:
        raise ValueError(f"max_params_per_row must be positive, got {max_params_per_row}")
    if ceiling <= 0:
        raise ValueError(f"ceiling must be positive, got {ceiling}")
    if max_params_per_row > ceiling:
        raise ValueError(
            f"A row binding {max_params_per_row} parameters cannot fit under a ceiling of {ceiling}"
        )
    if max_rows is not None and max_rows <= 0:
        raise ValueError(f"max_rows must be positive, got {max_rows}")
    size = ceiling // max_params_per_row
    if max_rows is not None:
        size = min(size, max_rows)
    return size


def partition[T](
    candidates: Iterable[T],
    max_params_per_row: int,
    ceiling: int,
    *,
    max_rows: int | None = None,
) -> Iterator[list[T]]:
    """Yield consecutive sub-lists of ``candidates`` that each fit in one statement.

    Order is preserved and no sub-list is empty. Arguments are validated eagerly so a
    misconfigured caller fails before touching the store.
    """

    size = rows_per_statement(max_params_per_row, ceiling, max_rows=max_rows)
    return batched(candidates, size)


def batched[T](items: Iterable[T], size: int) -> Iterator[list[T]]:
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    return _batches(iter(items), size)


def _batches[T](iterator: Iterator[T], size: int) -> Iterator[list[T]]:
    while batch := list(islice(iterator, size)):
        yield batch
