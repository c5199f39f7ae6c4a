"""Error kinds and exceptions raised across the reconciliation engine."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Closed set of outcomes a row or a run can fail with."""

    UNRESOLVED_ENTITY = "unresolved-entity"
    CATALOG_MISS = "catalog-miss"
    STORE_CONFLICT = "store-conflict"
    STORE_UNAVAILABLE = "store-unavailable"
    MALFORMED_INPUT = "malformed-input"

    @property
    def is_recoverable(self) -> bool:
        return self in {
            ErrorKind.UNRESOLVED_ENTITY,
            ErrorKind.CATALOG_MISS,
            ErrorKind.STORE_CONFLICT,
        }


class SelloutError(Exception):
    """Base class for domain-level failures."""

    kind: ErrorKind


class EntityConflictError(SelloutError):
    """A write hit the store's uniqueness constraint (usually a concurrent run)."""

    kind = ErrorKind.STORE_CONFLICT


class StoreUnavailableError(SelloutError):
    """A store round-trip failed outright; the current chunk is rolled back."""

    kind = ErrorKind.STORE_UNAVAILABLE


class MalformedInputError(SelloutError):
    """The input stream broke an invariant the parser is supposed to guarantee."""

    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, message: str, *, row_number: int | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number
