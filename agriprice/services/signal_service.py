"""End-to-end signal run: raw rows -> USD/kg series -> horizon signals -> store.

Both the one-shot entrypoint and the cron endpoint call ``SignalService.run``
so the two trigger surfaces cannot drift apart.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agriprice.core.config import settings
from agriprice.core.errors import PersistenceConflict
from agriprice.core.logging import get_logger
from agriprice.ingestion.raw_prices import RawPriceRepository
from agriprice.models.runs import JobRun
from agriprice.schemas.signals import SignalRunResult
from agriprice.services.normalizer import ConversionTables
from agriprice.services.series_builder import build_series
from agriprice.services.signal_calculator import compute_signals, latest_per_key
from agriprice.services.signal_store import SignalStore

log = get_logger("signal_service")

JOB_NAME = "price_signals"


class SignalService:
    """Recomputes every price signal from the stored raw prices.

    Responsibilities:
    - Load conversion tables once per run
    - Build canonical series and compute horizon signals
    - Overwrite one signal row per canonical key
    - Record the run and its counts
    """

    def __init__(self, db: Session, lookback_days: Optional[int] = None):
        self.db = db
        self.lookback_days = settings.SIGNAL_LOOKBACK_DAYS if lookback_days is None else lookback_days
        self.store = SignalStore(db)

    def run(self, now: Optional[datetime] = None) -> SignalRunResult:
        now = now or datetime.now(timezone.utc)
        run = self._start_run()

        try:
            tables = ConversionTables.load(self.db)
            since = now - timedelta(days=self.lookback_days)
            observations, invalid = RawPriceRepository(self.db).load_observations(since)

            series, stats = build_series(observations, tables)
            signals = compute_signals(series, now)
            log.info(f"Processing {len(signals)} price series...")

            selected = latest_per_key(signals)
            superseded = len(signals) - len(selected)
            if superseded:
                log.info(f"{superseded} series superseded by a fresher source for the same key")

            result = SignalRunResult(success=True, total=len(signals), skipped=superseded, errors=invalid)
            for signal in selected:
                try:
                    outcome = self.store.save(signal)
                except PersistenceConflict as exc:
                    log.warning(str(exc))
                    result.skipped += 1
                    continue
                except SQLAlchemyError as exc:
                    self.db.rollback()
                    log.error(f"Error saving signal for {signal.key}: {exc}")
                    result.errors += 1
                    continue

                if outcome == "created":
                    result.created += 1
                else:
                    result.updated += 1

            summary = self.store.summary()
            result.message = (
                f"{summary['total']} signals stored, {summary['changed']} changed in any horizon, "
                f"{summary['stable']} stable"
            )
            self._finish_run(
                run,
                result,
                meta={**stats.as_dict(), "invalid_rows": invalid, "superseded": superseded, **summary},
            )
            log.info(
                f"Signal run finished | total={result.total} created={result.created} "
                f"updated={result.updated} skipped={result.skipped} errors={result.errors}"
            )
            return result

        except Exception as exc:  # noqa: BLE001
            self.db.rollback()
            result = SignalRunResult(success=False, message=str(exc))
            self._finish_run(run, result)
            log.error(f"Signal run failed: {exc}")
            raise

    # -------------------------------------------------------------------------
    # Run bookkeeping
    # -------------------------------------------------------------------------
    def _start_run(self) -> JobRun:
        run = JobRun(job_name=JOB_NAME, status="running", records_processed=0)
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        return run

    def _finish_run(self, run: JobRun, result: SignalRunResult, meta: Optional[dict] = None) -> None:
        run.status = "success" if result.success else "failure"
        run.records_processed = result.created + result.updated
        run.error_message = None if result.success else result.message
        run.meta = {**(meta or {}), **result.model_dump(exclude={"message", "success"})}
        run.ended_at = datetime.now(timezone.utc)
        self.db.add(run)
        self.db.commit()
