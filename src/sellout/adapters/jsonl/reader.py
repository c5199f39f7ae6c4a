"""Stream sell-out rows and delete keys from JSON-lines files.

Each non-blank line holds one JSON object. A blank line stands for a structurally
empty spreadsheet row, so two blank lines in a row end the data for the ingestion
run. A line that fails validation raises ``MalformedInputError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from sellout.domain.errors import MalformedInputError

from .schema import DeleteKeyPayload, RowPayload
from .translator import translate_delete_key, translate_row

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sellout.domain.model import DeleteKey, RowRecord

log = logging.getLogger(__name__)


def read_rows(path: Path) -> Iterator[RowRecord | None]:
    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                yield None
                continue
            try:
                payload = RowPayload.model_validate_json(line)
            except ValidationError as exc:
                raise MalformedInputError(
                    f"{path.name}:{line_number}: invalid row: {_summarize(exc)}",
                    row_number=line_number,
                ) from exc
            yield translate_row(payload, line_number=line_number)


def read_delete_keys(path: Path) -> list[DeleteKey]:
    keys: list[DeleteKey] = []
    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = DeleteKeyPayload.model_validate_json(line)
            except ValidationError as exc:
                raise MalformedInputError(
                    f"{path.name}:{line_number}: invalid delete key: {_summarize(exc)}",
                    row_number=line_number,
                ) from exc
            keys.append(translate_delete_key(payload))
    log.debug("Read %d delete keys from %s", len(keys), path)
    return keys


def _summarize(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or '<row>'}: {error['msg']}"
        for error in exc.errors()
    )
