"""Text normalization used to compare reference entity codes and names.

Two spellings denote the same entity when they are equal after trimming, collapsing
internal whitespace, stripping diacritics and upper-casing.
"""

from __future__ import annotations

import unicodedata

from sellout.domain.model import ReferenceKey


def normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    collapsed = " ".join(value.split())
    if not collapsed:
        return None
    decomposed = unicodedata.normalize("NFD", collapsed)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.upper()


def reference_key(code: str | None, name: str | None) -> ReferenceKey | None:
    """Return the lookup key for a raw (code, name) pair.

    A blank code cannot identify anything and yields ``None``. A blank name yields a
    code-only key.
    """

    normalized_code = normalize_text(code)
    if normalized_code is None:
        return None
    return ReferenceKey(code=normalized_code, name=normalize_text(name))


def display_name(name: str | None) -> str | None:
    """Trim ``name`` for storage, keeping its original casing and accents."""

    if name is None:
        return None
    return name.strip() or None
