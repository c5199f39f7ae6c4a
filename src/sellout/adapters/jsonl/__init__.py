"""JSON-lines boundary adapter for sell-out rows and delete keys."""

from __future__ import annotations

from .reader import read_delete_keys, read_rows
from .schema import DeleteKeyPayload, RowPayload
from .translator import translate_delete_key, translate_row

__all__ = [
    "DeleteKeyPayload",
    "RowPayload",
    "read_delete_keys",
    "read_rows",
    "translate_delete_key",
    "translate_row",
]
