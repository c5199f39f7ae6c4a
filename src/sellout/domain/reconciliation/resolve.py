"""Reference entity resolution.

Responsibilities of this stage:
- normalize every raw (code, name) pair of a chunk into a ``ReferenceKey``
- look the keys up in batched existence checks bounded by the parameter ceiling
- create one entity per missing normalized pair, memoized for the rest of the run
- report creation conflicts per pair instead of failing the chunk

Out of scope for this stage:
- sales record classification
- commit/rollback
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sellout.domain.errors import EntityConflictError
from sellout.domain.model import ReferenceEntity, ReferenceKey

from .normalize import display_name, reference_key
from .partition import batched, partition

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sellout.domain.ports import ReferenceEntityRepository

log = logging.getLogger(__name__)

type RawPair = tuple[str | None, str | None]

# code + normalized name
_PARAMS_PER_KEY = 2


@dataclass(slots=True)
class EntityResolution:
    """Entities and conflicts for the raw pairs of one chunk.

    Pairs absent from both maps are unresolved.
    """

    entities: dict[RawPair, ReferenceEntity] = field(default_factory=dict[RawPair, ReferenceEntity])
    conflicts: dict[RawPair, str] = field(default_factory=dict[RawPair, str])
    created: int = 0

    def entity_for(self, pair: RawPair) -> ReferenceEntity | None:
        return self.entities.get(pair)

    def conflict_for(self, pair: RawPair) -> str | None:
        return self.conflicts.get(pair)


class ReferenceResolver:
    """Resolve or create the parent entities a chunk depends on.

    ``cache`` is owned by the run and shared by every chunk of it, so two rows with the
    same normalized pair always share one entity. Code-only keys are resolved against
    the store by code and never create anything.
    """

    def __init__(
        self,
        repository: ReferenceEntityRepository,
        cache: dict[ReferenceKey, ReferenceEntity],
        *,
        in_limit: int,
        parameter_ceiling: int,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._in_limit = in_limit
        self._parameter_ceiling = parameter_ceiling

    def resolve(self, candidates: Iterable[RawPair]) -> EntityResolution:
        keys_by_pair: dict[RawPair, ReferenceKey] = {}
        for pair in dict.fromkeys(candidates):
            key = reference_key(*pair)
            if key is not None:
                keys_by_pair[pair] = key

        resolution = EntityResolution()
        full_keys = [
            key
            for key in dict.fromkeys(keys_by_pair.values())
            if not key.is_code_only and key not in self._cache
        ]
        self._fetch_full_keys(full_keys)

        failed: dict[ReferenceKey, str] = {}
        for pair, key in keys_by_pair.items():
            # code-only keys (no name) are looked up below, never created
            if key.name is None or key in self._cache or key in failed:
                continue
            message = self._create(key, key.name, pair[1])
            if message is None:
                resolution.created += 1
            else:
                failed[key] = message

        code_only = [
            key
            for key in dict.fromkeys(keys_by_pair.values())
            if key.is_code_only and key not in self._cache
        ]
        self._fetch_code_only(code_only)

        for pair, key in keys_by_pair.items():
            if key in failed:
                resolution.conflicts[pair] = failed[key]
                continue
            entity = self._cache.get(key)
            if entity is not None:
                resolution.entities[pair] = entity
        return resolution

    def _fetch_full_keys(self, keys: list[ReferenceKey]) -> None:
        if not keys:
            return
        for batch in partition(
            keys, _PARAMS_PER_KEY, self._parameter_ceiling, max_rows=self._in_limit
        ):
            self._cache.update(self._repository.find_by_keys(batch))

    def _fetch_code_only(self, keys: list[ReferenceKey]) -> None:
        if not keys:
            return
        for batch in batched(keys, min(self._in_limit, self._parameter_ceiling)):
            found = self._repository.find_by_codes([key.code for key in batch])
            for key in batch:
                entity = found.get(key.code)
                if entity is not None:
                    self._cache[key] = entity

    def _create(self, key: ReferenceKey, name_key: str, raw_name: str | None) -> str | None:
        entity = ReferenceEntity(
            code=key.code,
            name=display_name(raw_name) or name_key,
            name_key=name_key,
        )
        try:
            self._repository.create(entity)
        except EntityConflictError as exc:
            log.warning("Could not create reference entity %s / %s: %s", key.code, key.name, exc)
            return str(exc) or "reference entity already exists"
        log.info("Created reference entity %s", entity)
        self._cache[key] = entity
        return None
