"""Initial schema: reference tables, catalog, raw prices, signals, runs

Revision ID: 0001_initial
Revises:
Create Date: 2025-06-02
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "currencies",
        sa.Column("code", sa.String(10), primary_key=True, comment="ISO 4217 code"),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("rate_to_usd", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "units",
        sa.Column("code", sa.String(50), primary_key=True),
        sa.Column("name_en", sa.String(100), nullable=True),
        sa.Column("base_unit", sa.String(20), nullable=False, server_default="kg"),
        sa.Column("conversion_rate", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "global_products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("name_en", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_global_products_name", "global_products", ["name"])

    op.create_table(
        "source_products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("source", sa.String(30), nullable=False),
        sa.Column("name", sa.String(300), nullable=False, comment="Product name as the source spells it"),
        sa.Column("external_code", sa.String(100), nullable=True),
        sa.Column(
            "global_product_id",
            sa.String(36),
            sa.ForeignKey("global_products.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("match_score", sa.Integer(), nullable=True),
        sa.Column("match_type", sa.String(20), nullable=True),
        sa.Column("is_manual_match", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("source", "name", name="uq_source_products_source_name"),
    )
    op.create_index("ix_source_products_source", "source_products", ["source"])
    op.create_index("ix_source_products_global_product_id", "source_products", ["global_product_id"])

    op.create_table(
        "source_series",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("source", sa.String(30), nullable=False),
        sa.Column("external_id", sa.String(100), nullable=False, unique=True, comment="Upstream series uuid"),
        sa.Column("source_product_id", sa.String(36), sa.ForeignKey("source_products.id"), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("unit", sa.String(100), nullable=False),
        sa.Column("country_code", sa.String(3), nullable=True),
        sa.Column("market_name", sa.String(200), nullable=True),
        sa.Column("price_type", sa.String(50), nullable=True),
        sa.Column("global_variety_id", sa.String(36), nullable=True),
        sa.Column("global_country_id", sa.String(36), nullable=True),
        sa.Column("global_market_id", sa.String(36), nullable=True),
        sa.Column("global_price_stage_id", sa.String(36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "raw_prices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("source", sa.String(30), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(18, 6), nullable=True),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("unit", sa.String(100), nullable=False),
        sa.Column("global_product_id", sa.String(36), nullable=True),
        sa.Column("global_variety_id", sa.String(36), nullable=True),
        sa.Column("global_country_id", sa.String(36), nullable=True),
        sa.Column("global_market_id", sa.String(36), nullable=True),
        sa.Column("global_price_stage_id", sa.String(36), nullable=True),
        sa.Column("series_id", sa.String(36), sa.ForeignKey("source_series.id"), nullable=True),
        sa.Column("ingested_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("series_id", "date", name="uq_raw_prices_series_date"),
    )
    op.create_index("ix_raw_prices_source", "raw_prices", ["source"])
    op.create_index("ix_raw_prices_date", "raw_prices", ["date"])

    op.create_table(
        "price_signals",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("global_product_id", sa.String(36), nullable=False),
        sa.Column("global_variety_id", sa.String(36), nullable=True),
        sa.Column("global_country_id", sa.String(36), nullable=False),
        sa.Column("global_market_id", sa.String(36), nullable=False),
        sa.Column("global_price_stage_id", sa.String(36), nullable=True),
        sa.Column("current_price", sa.Float(), nullable=False),
        sa.Column("current_price_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("previous_price", sa.Float(), nullable=True),
        sa.Column("month_ago_price", sa.Float(), nullable=True),
        sa.Column("three_month_ago_price", sa.Float(), nullable=True),
        sa.Column("six_month_ago_price", sa.Float(), nullable=True),
        sa.Column("year_ago_price", sa.Float(), nullable=True),
        sa.Column("mom", sa.Float(), nullable=True),
        sa.Column("three_month_change", sa.Float(), nullable=True),
        sa.Column("six_month_change", sa.Float(), nullable=True),
        sa.Column("year_change", sa.Float(), nullable=True),
        sa.Column("mom_status", sa.String(10), nullable=False, server_default="STABLE"),
        sa.Column("three_month_status", sa.String(10), nullable=False, server_default="STABLE"),
        sa.Column("six_month_status", sa.String(10), nullable=False, server_default="STABLE"),
        sa.Column("year_status", sa.String(10), nullable=False, server_default="STABLE"),
        sa.Column("data_source", sa.String(30), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "global_product_id",
            "global_variety_id",
            "global_country_id",
            "global_market_id",
            "global_price_stage_id",
            name="uq_price_signals_canonical_key",
        ),
    )
    op.create_index("ix_price_signals_global_product_id", "price_signals", ["global_product_id"])
    op.create_index("ix_price_signals_global_country_id", "price_signals", ["global_country_id"])

    op.create_table(
        "job_runs",
        sa.Column("run_id", sa.String(36), primary_key=True),
        sa.Column("job_name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("job_runs")
    op.drop_index("ix_price_signals_global_country_id", "price_signals")
    op.drop_index("ix_price_signals_global_product_id", "price_signals")
    op.drop_table("price_signals")
    op.drop_index("ix_raw_prices_date", "raw_prices")
    op.drop_index("ix_raw_prices_source", "raw_prices")
    op.drop_table("raw_prices")
    op.drop_table("source_series")
    op.drop_index("ix_source_products_global_product_id", "source_products")
    op.drop_index("ix_source_products_source", "source_products")
    op.drop_table("source_products")
    op.drop_index("ix_global_products_name", "global_products")
    op.drop_table("global_products")
    op.drop_table("units")
    op.drop_table("currencies")
