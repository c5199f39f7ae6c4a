"""Batching and parameter-limit defaults for ingestion and bulk deletion."""

from __future__ import annotations

from dataclasses import dataclass

from .env import positive_int_env
from .errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 10_000
DEFAULT_BATCH_SIZE = 1_000
DEFAULT_IN_LIMIT = 1_000
# SQL Server's hard cap on bound parameters per statement; the tightest store we target.
DEFAULT_PARAMETER_CEILING = 2_100
# 500 rows x 4 parameters = 2,000, safely under the ceiling.
DEFAULT_DELETE_ROWS_PER_STATEMENT = 500
DEFAULT_DELETE_TARGET_MAX = 5_000
DEFAULT_DELETE_ROUND_SIZE = 5_000


@dataclass(frozen=True, slots=True)
class IngestConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    in_limit: int = DEFAULT_IN_LIMIT
    parameter_ceiling: int = DEFAULT_PARAMETER_CEILING
    delete_rows_per_statement: int = DEFAULT_DELETE_ROWS_PER_STATEMENT
    delete_target_max: int = DEFAULT_DELETE_TARGET_MAX
    delete_round_size: int = DEFAULT_DELETE_ROUND_SIZE

    def __post_init__(self) -> None:
        for name in (
            "chunk_size",
            "batch_size",
            "in_limit",
            "parameter_ceiling",
            "delete_rows_per_statement",
            "delete_target_max",
            "delete_round_size",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")


def get_ingest_config() -> IngestConfig:
    return IngestConfig(
        chunk_size=positive_int_env("SELLOUT_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        batch_size=positive_int_env("SELLOUT_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        in_limit=positive_int_env("SELLOUT_IN_LIMIT", DEFAULT_IN_LIMIT),
        parameter_ceiling=positive_int_env("SELLOUT_PARAMETER_CEILING", DEFAULT_PARAMETER_CEILING),
        delete_rows_per_statement=positive_int_env(
            "SELLOUT_DELETE_ROWS_PER_STATEMENT", DEFAULT_DELETE_ROWS_PER_STATEMENT
        ),
        delete_target_max=positive_int_env("SELLOUT_DELETE_TARGET_MAX", DEFAULT_DELETE_TARGET_MAX),
        delete_round_size=positive_int_env("SELLOUT_DELETE_ROUND_SIZE", DEFAULT_DELETE_ROUND_SIZE),
    )
