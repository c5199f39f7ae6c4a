"""Initial sell-out schema: reference entities, catalog products and sales records.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "reference_entity",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("name_key", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("provider_code", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_reference_entity"),
        sa.UniqueConstraint(
            "code", "name_key", name="uq_reference_entity_reference_entity_code"
        ),
    )
    op.create_table(
        "catalog_product",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=False),
        sa.Column("catalog_code", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_catalog_product"),
    )
    op.create_index("ix_catalog_product_barcode", "catalog_product", ["barcode"])
    op.create_table(
        "sales_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("reference_entity_id", sa.Uuid(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("day", sa.Integer(), nullable=False),
        sa.Column("barcode", sa.String(length=64), nullable=False),
        sa.Column("pdv_code", sa.String(length=64), nullable=True),
        sa.Column("pdv_name", sa.String(length=255), nullable=True),
        sa.Column("brand", sa.String(length=128), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("units_sold", sa.Float(), nullable=False),
        sa.Column("value_sold", sa.Float(), nullable=False),
        sa.Column("stock_units", sa.Float(), nullable=False),
        sa.Column("stock_value", sa.Float(), nullable=False),
        sa.Column("catalog_code", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(
            ["reference_entity_id"],
            ["reference_entity.id"],
            name="fk_sales_record_sales_record_reference_entity_id_reference_entity",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sales_record"),
        sa.UniqueConstraint(
            "reference_entity_id",
            "year",
            "month",
            "day",
            "barcode",
            "pdv_code",
            name="uq_sales_record_sales_record_reference_entity_id",
        ),
    )
    op.create_index(
        "ix_sales_record_period_barcode", "sales_record", ["year", "month", "barcode"]
    )


def downgrade() -> None:
    op.drop_index("ix_sales_record_period_barcode", table_name="sales_record")
    op.drop_table("sales_record")
    op.drop_index("ix_catalog_product_barcode", table_name="catalog_product")
    op.drop_table("catalog_product")
    op.drop_table("reference_entity")
