"""Raw price rows as delivered by each source, already linked to canonical ids."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from agriprice.models.base import Base


class RawPrice(Base):
    __tablename__ = "raw_prices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    source: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    price: Mapped[float | None] = mapped_column(Numeric(18, 6, asdecimal=False), nullable=True)

    currency: Mapped[str] = mapped_column(String(10), nullable=False)

    unit: Mapped[str] = mapped_column(String(100), nullable=False)

    global_product_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_variety_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_country_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_market_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    global_price_stage_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    series_id: Mapped[str | None] = mapped_column(ForeignKey("source_series.id"), nullable=True)

    ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    __table_args__ = (UniqueConstraint("series_id", "date", name="uq_raw_prices_series_date"),)
