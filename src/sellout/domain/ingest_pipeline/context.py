"""Run-scoped state shared by the chunks of one ingestion run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sellout.domain.model import ReferenceEntity, ReferenceKey

if TYPE_CHECKING:
    from sellout.config import IngestConfig


@dataclass(slots=True)
class RunContext:
    """Caches and settings threaded through the chunks of a single run.

    A context is never shared between runs: it is created when a run starts and
    cleared when it ends, so a later run re-reads identities from the store.
    """

    config: IngestConfig
    source_name: str | None = None
    entity_cache: dict[ReferenceKey, ReferenceEntity] = field(
        default_factory=dict[ReferenceKey, ReferenceEntity]
    )
    # barcode -> catalog code, None marks a miss
    catalog_cache: dict[str, str | None] = field(default_factory=dict[str, str | None])

    def clear(self) -> None:
        self.entity_cache.clear()
        self.catalog_cache.clear()
