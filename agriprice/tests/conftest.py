"""Shared fixtures: in-memory database and canned observations."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("CRON_SECRET", "")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from agriprice.models import Base, Currency, RawPrice  # noqa: E402

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Session bound to the in-memory database"""
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    return NOW


def _seed_prices(db, now):
    """Two linked AZN series in Baku and Ganja plus one unlinked and one broken row."""

    def row(days_ago, price, market="market-baku", product="prod-apple"):
        return RawPrice(
            source="NATIONAL",
            date=now - timedelta(days=days_ago),
            price=price,
            currency="AZN",
            unit="kg",
            global_product_id=product,
            global_country_id="country-az",
            global_market_id=market,
        )

    db.add(Currency(code="AZN", name="Azerbaijani manat", rate_to_usd=1.7))
    db.add_all(
        [
            # Baku: 1.10 USD/kg now, 0.588 a month ago, 1.00 three months ago
            row(1, 1.87),
            row(27, 1.00),
            row(95, 1.70),
            # Ganja: flat
            row(2, 1.70, market="market-ganja"),
            row(30, 1.70, market="market-ganja"),
            # Not linked to a product yet
            row(3, 2.00, product=None),
            # No price
            row(4, None),
        ]
    )
    db.commit()


@pytest.fixture
def seed_prices():
    return _seed_prices
