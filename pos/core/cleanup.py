import logging
import threading
from datetime import date
from typing import Callable, Optional

from pos.core.config import CLEANUP_INTERVAL
from pos.core.enums import CleanupState
from pos.core.storage import STORAGE_KEYS, LocalStore
from pos.utils.time_helpers import date_key

logger = logging.getLogger(__name__)

LAST_CLEANUP_KEY = STORAGE_KEYS['LAST_CLEANUP_DATE']

class DailyCleanupService:
    """Runs a cleanup callback once whenever the calendar day changes"""

    def __init__(self, store: Optional[LocalStore] = None, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today
        self.last_cleanup_date: Optional[str] = None
        self.state = CleanupState.IDLE
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def get_current_date(self) -> str:
        return date_key(self.today())

    def initialize(self):
        """Load the last cleanup date, or record today when none was stored"""
        stored = self.store.load(LAST_CLEANUP_KEY) if self.store else None
        if stored:
            self.last_cleanup_date = str(stored)
        else:
            self.last_cleanup_date = self.get_current_date()
            self._save_last_cleanup_date()
        logger.info(f"Daily cleanup initialized, last cleanup date {self.last_cleanup_date}")

    def has_day_changed(self) -> bool:
        current = self.get_current_date()
        if self.last_cleanup_date is None:
            self.last_cleanup_date = current
            return False
        return self.last_cleanup_date != current

    def check(self, cleanup_callback: Callable[[], None]) -> bool:
        """Run the callback if the day rolled over since the last cleanup"""
        if not self.has_day_changed():
            return False

        self.state = CleanupState.CLEANUP_PENDING
        current = self.get_current_date()
        logger.info(f"Day changed from {self.last_cleanup_date} to {current}, running cleanup")
        try:
            cleanup_callback()
        finally:
            self.last_cleanup_date = current
            self._save_last_cleanup_date()
            self.state = CleanupState.IDLE
        return True

    def start_monitoring(self, cleanup_callback: Callable[[], None], interval: float = CLEANUP_INTERVAL):
        """Check now, then every interval seconds on a daemon thread"""
        if self._thread and self._thread.is_alive():
            self.stop_monitoring()

        self._safe_check(cleanup_callback)
        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def run():
            while not stop_event.wait(interval):
                self._safe_check(cleanup_callback)

        self._thread = threading.Thread(target=run, name='daily-cleanup', daemon=True)
        self._thread.start()

    def stop_monitoring(self):
        if self._stop_event:
            self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        self._thread = None
        self._stop_event = None

    def _save_last_cleanup_date(self):
        if self.store:
            self.store.save(LAST_CLEANUP_KEY, self.last_cleanup_date)

    def _safe_check(self, cleanup_callback: Callable[[], None]):
        try:
            self.check(cleanup_callback)
        except Exception as e:
            logger.error(f"Daily cleanup failed: {e}", exc_info=True)
