"""Conversion reference tables loaded once per run (currencies, units)."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from agriprice.models.base import Base


class Currency(Base):
    __tablename__ = "currencies"

    code: Mapped[str] = mapped_column(String(10), primary_key=True, comment="ISO 4217 code")

    name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # 1 USD = rate_to_usd units of this currency
    rate_to_usd: Mapped[float] = mapped_column(Float, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class Unit(Base):
    __tablename__ = "units"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)

    name_en: Mapped[str | None] = mapped_column(String(100), nullable=True)

    base_unit: Mapped[str] = mapped_column(String(20), nullable=False, default="kg")

    # How many base units one of this unit holds (100kg -> 100)
    conversion_rate: Mapped[float] = mapped_column(Float, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
