"""One trend signal per canonical series, overwritten on every run."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from agriprice.models.base import Base


class PriceSignal(Base):
    __tablename__ = "price_signals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Canonical key
    global_product_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    global_variety_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_country_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    global_market_id: Mapped[str] = mapped_column(String(36), nullable=False)
    global_price_stage_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # USD/kg
    current_price: Mapped[float] = mapped_column(Float, nullable=False)
    current_price_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    previous_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    month_ago_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    three_month_ago_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    six_month_ago_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    year_ago_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Percent changes, 2 decimals
    mom: Mapped[float | None] = mapped_column(Float, nullable=True)
    three_month_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    six_month_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    year_change: Mapped[float | None] = mapped_column(Float, nullable=True)

    mom_status: Mapped[str] = mapped_column(String(10), nullable=False, default="STABLE")
    three_month_status: Mapped[str] = mapped_column(String(10), nullable=False, default="STABLE")
    six_month_status: Mapped[str] = mapped_column(String(10), nullable=False, default="STABLE")
    year_status: Mapped[str] = mapped_column(String(10), nullable=False, default="STABLE")

    data_source: Mapped[str] = mapped_column(String(30), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "global_product_id",
            "global_variety_id",
            "global_country_id",
            "global_market_id",
            "global_price_stage_id",
            name="uq_price_signals_canonical_key",
        ),
    )
