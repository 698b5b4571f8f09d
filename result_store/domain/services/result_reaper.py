"""Result reaper - periodic eviction of old records

Runs on an APScheduler BackgroundScheduler thread. Each firing asks the store
to delete records older than the threshold; the store serializes the firing
with every other mutation through its own lock. A failed firing is logged
and the next one runs as scheduled.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from result_store.config import Settings
from result_store.domain.exceptions import StoreError
from result_store.domain.ports.result_store import ResultStore

logger = logging.getLogger(__name__)

REAPER_JOB_ID = "result_store_reaper"


class ResultReaper:
    """Evicts expired records on a fixed period.

    Dependencies:
    - store: anything implementing ``reap_expired`` (required)
    - scheduler: an APScheduler scheduler; a daemon BackgroundScheduler by default
    """

    def __init__(
        self,
        store: ResultStore,
        period: timedelta,
        threshold: timedelta,
        initial_delay: timedelta = timedelta(seconds=15),
        scheduler: BaseScheduler | None = None,
    ):
        if period <= timedelta(0):
            raise ValueError("reaper period must be positive")
        self._store = store
        self.period = period
        self.threshold = threshold
        self.initial_delay = initial_delay
        self.scheduler = scheduler or BackgroundScheduler(daemon=True, timezone="UTC")
        self._is_running = False

    @classmethod
    def from_settings(cls, store: ResultStore, settings: Settings) -> "ResultReaper":
        return cls(
            store,
            period=settings.wipe_period,
            threshold=settings.wipe_threshold,
            initial_delay=settings.wipe_initial_delay,
        )

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        """Start the scheduler and register the reaping job."""
        if self._is_running:
            return

        self.scheduler.start()
        self._is_running = True

        trigger = IntervalTrigger(
            seconds=self.period.total_seconds(),
            start_date=datetime.now(UTC) + self.initial_delay,
            timezone="UTC",
        )
        self.scheduler.add_job(
            func=self.run_once,
            trigger=trigger,
            id=REAPER_JOB_ID,
            name="result_store_reaper",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            "Started result reaper; period %s, threshold %s", self.period, self.threshold
        )

    def stop(self) -> None:
        """Stop the scheduler, waiting for a running firing to finish."""
        if not self._is_running:
            return

        self.scheduler.shutdown(wait=True)
        self._is_running = False
        logger.info("Stopped result reaper")

    def get_job(self) -> Any | None:
        """Return the APScheduler job of the reaper, if scheduled."""
        return self.scheduler.get_job(REAPER_JOB_ID)

    def run_once(self) -> int:
        """One reaper firing; never raises."""
        logger.info("Result reaper checking for records older than %s", self.threshold)
        try:
            return self._store.reap_expired(self.threshold)
        except StoreError:
            logger.warning("Failed to delete old records.", exc_info=True)
            return 0
