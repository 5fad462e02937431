import logging
import threading
from datetime import datetime, time, timedelta

from clock import Clock
from grid import TIMEZONE

logger = logging.getLogger(__name__)


def seconds_until_next_midnight(now: datetime) -> float:
    """Delay from ``now`` to the next 00:00 in IST; a full day when already at midnight."""
    local = now.astimezone(TIMEZONE)
    midnight = datetime.combine(local.date() + timedelta(days=1), time(0), tzinfo=TIMEZONE)
    return (midnight - local).total_seconds()


class RolloverScheduler:
    """Runs the daily archive-and-clear of the booking store at every IST midnight."""

    def __init__(self, store, clock: Clock = None):
        self.store = store
        self.clock = clock or store.clock
        self._stop = threading.Event()
        self._thread = None

    def run_once(self) -> int:
        logger.info("Running reset...")
        try:
            return self.store.reset_daily_bookings()
        except Exception:
            # a failed run is picked up again by the next firing
            logger.exception("Reset error")
            return 0

    def _loop(self):
        while not self._stop.is_set():
            delay = seconds_until_next_midnight(self.clock.now())
            if self._stop.wait(delay):
                break
            self.run_once()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="rollover", daemon=True)
        self._thread.start()
        logger.info("Rollover scheduler started (Asia/Kolkata midnight)")

    def stop(self, timeout: float = 5):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Rollover scheduler stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
