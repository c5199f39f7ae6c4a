"""Persistent entities of the sell-out store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sellout.domain.model.base import Entity
from sellout.domain.model.keys import BusinessKey, ReferenceKey

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class ReferenceEntity(Entity):
    """Parent entity (customer/client) that sales records point to.

    ``code`` holds the normalized code, ``name`` the original trimmed display name and
    ``name_key`` the normalized name. The pair (``code``, ``name_key``) is unique: the
    same code with a different display name is a different entity.
    """

    code: str
    name: str
    name_key: str
    city: str | None = None
    provider_code: str | None = None

    @property
    def key(self) -> ReferenceKey:
        return ReferenceKey(code=self.code, name=self.name_key)

    def __repr__(self) -> str:
        return f"<ReferenceEntity {self.code} - {self.name}>"


@dataclass(eq=False, kw_only=True)
class CatalogProduct(Entity):
    """Read-only barcode to catalog-code mapping owned by the product catalog."""

    barcode: str
    catalog_code: str


@dataclass(eq=False, kw_only=True)
class SalesRecord(Entity):
    """One persisted sell-out fact, unique per business key.

    The parent reference is a plain foreign key; reference entities never hold a
    collection of their sales.
    """

    reference_entity_id: UUID
    year: int
    month: int
    day: int
    barcode: str
    pdv_code: str | None = None
    pdv_name: str | None = None
    brand: str | None = None
    description: str | None = None
    city: str | None = None
    units_sold: float = 0.0
    value_sold: float = 0.0
    stock_units: float = 0.0
    stock_value: float = 0.0
    catalog_code: str | None = None

    @property
    def business_key(self) -> BusinessKey:
        return BusinessKey(
            entity_id=self.reference_entity_id,
            year=self.year,
            month=self.month,
            day=self.day,
            barcode=self.barcode,
            pdv_code=self.pdv_code,
        )

    def __repr__(self) -> str:
        return (
            f"<SalesRecord {self.year}-{self.month:02d}-{self.day:02d} "
            f"{self.barcode} @ {self.pdv_code}>"
        )
