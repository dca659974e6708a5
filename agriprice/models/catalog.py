"""Canonical product catalog and the source-side records linked to it.

Every source names commodities its own way ("Dessert apples", "Apples
(red)", "alma"). A ``SourceProduct`` holds one such name and, once the
product matcher or an admin has linked it, points at the canonical
``GlobalProduct``. ``SourceSeries`` describes one tracked retail-archive
price series and carries the canonical country/market/stage links that
its raw prices inherit.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agriprice.models.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class GlobalProduct(Base):
    __tablename__ = "global_products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    # Local-language (Azerbaijani) canonical name, e.g. "alma"
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    name_en: Mapped[str | None] = mapped_column(String(200), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )


class SourceProduct(Base):
    __tablename__ = "source_products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    source: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(300), nullable=False, comment="Product name as the source spells it")

    external_code: Mapped[str | None] = mapped_column(String(100), nullable=True)

    global_product_id: Mapped[str | None] = mapped_column(
        ForeignKey("global_products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    match_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    match_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    is_manual_match: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    global_product: Mapped[GlobalProduct | None] = relationship()

    __table_args__ = (UniqueConstraint("source", "name", name="uq_source_products_source_name"),)


class SourceSeries(Base):
    __tablename__ = "source_series"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    source: Mapped[str] = mapped_column(String(30), nullable=False)

    external_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, comment="Upstream series uuid")

    source_product_id: Mapped[str] = mapped_column(ForeignKey("source_products.id"), nullable=False)

    currency: Mapped[str] = mapped_column(String(10), nullable=False)

    unit: Mapped[str] = mapped_column(String(100), nullable=False)

    country_code: Mapped[str | None] = mapped_column(String(3), nullable=True)

    market_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    price_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Canonical links maintained outside the engine (admin linking)
    global_variety_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_country_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_market_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_price_stage_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    source_product: Mapped[SourceProduct] = relationship()
