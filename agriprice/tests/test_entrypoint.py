"""Batch entrypoint tests"""

import pytest
from sqlalchemy.orm import sessionmaker

from agriprice import signals_entrypoint
from agriprice.models import Currency, JobRun
from agriprice.services import currency_service


@pytest.fixture
def local_sessions(engine, monkeypatch):
    monkeypatch.setattr(signals_entrypoint, "SessionLocal", sessionmaker(bind=engine, expire_on_commit=False))
    return engine


class TestEntrypoint:
    """Job dispatch and exit codes"""

    def test_invalid_job_exits_2(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["signals_entrypoint", "bogus"])
        with pytest.raises(SystemExit) as exc_info:
            signals_entrypoint.main()
        assert exc_info.value.code == 2

    def test_default_job_runs_signals(self, monkeypatch, local_sessions, db_session):
        monkeypatch.setattr("sys.argv", ["signals_entrypoint"])

        result = signals_entrypoint.main()

        assert result["success"] is True
        assert result["total"] == 0
        assert db_session.query(JobRun).one().job_name == "price_signals"

    def test_match_products_job(self, monkeypatch, local_sessions):
        monkeypatch.setattr("sys.argv", ["signals_entrypoint", "match-products"])

        result = signals_entrypoint.main()

        assert result == {"success": True, "total": 0, "matched": 0, "unmatched": 0}

    def test_failure_exits_1(self, monkeypatch, local_sessions):
        def boom():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(signals_entrypoint, "run_signals", boom)
        monkeypatch.setattr("sys.argv", ["signals_entrypoint", "signals"])

        with pytest.raises(SystemExit) as exc_info:
            signals_entrypoint.main()
        assert exc_info.value.code == 1

    def test_currencies_job(self, monkeypatch, local_sessions, db_session):
        async def fake_fetch(url, **kwargs):
            return {"rates": {"USD": 1, "AZN": 1.7, "EUR": 0.92}}

        monkeypatch.setattr(currency_service, "fetch_json", fake_fetch)
        monkeypatch.setattr("sys.argv", ["signals_entrypoint", "currencies"])

        result = signals_entrypoint.main()

        assert result == {"success": True, "created": 3, "updated": 0, "total": 3}
        assert db_session.get(Currency, "EUR").rate_to_usd == 0.92
        assert db_session.query(JobRun).one().job_name == "currencies"
