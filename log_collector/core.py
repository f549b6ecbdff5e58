import logging
import threading
from typing import Optional

from .config import Appsettings
from .database.db import DBManager
from .database.ops import DBOperations
from .models import ProcessingStats
from .organization.copier import FileCopier
from .scanning.filesystem import DiskScanner
from .watching.observer import ChangeObserver

class CollectorService:
    """
    Drives the three triggers into one FileCopier:
    1. Optional startup rescan (synchronous, before the watcher is armed)
    2. Change observation (always on; re-armed by the periodic rescan if the
       source folder was missing at startup)
    3. Optional periodic rescan (safety net against missed events)

    Scans and watcher events may overlap; the store's idempotent insert
    keeps the copied-files table free of duplicates.
    """
    def __init__(self, settings: Appsettings, db_manager: Optional[DBManager] = None):
        self.settings = settings
        self.db_manager = db_manager or DBManager(settings.database_path)
        self.cumulative = ProcessingStats()

        conn = self.db_manager.connect()
        self.db_ops = DBOperations(conn, self.db_manager.lock)
        self.copier = FileCopier(settings, self.db_ops)
        self.scanner = DiskScanner(settings, self.copier)
        self.observer = ChangeObserver(settings, self.copier, on_result=self.cumulative.merge)

        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None

    def reset(self) -> int:
        removed = self.db_ops.reset()
        logging.warning(f"Database reset: {self.settings.database_path} ({removed} records removed)")
        return removed

    def rescan(self, reason: str = "Rescan") -> ProcessingStats:
        """Runs one full scan pass and folds it into the cumulative totals."""
        logging.info(
            f"{reason} starting (Filter={self.settings.filter}, Subdirs={self.settings.include_subdirectories})"
        )
        stats = self.scanner.run_full_scan()
        self.cumulative.merge(stats)
        logging.info(f"{reason} completed. {stats}")
        logging.info(f"Cumulative totals: {self.cumulative}")
        return stats

    def start(self, rescan: bool = False):
        logging.info(f"Tracking {self.db_ops.count()} previously copied files.")

        if rescan:
            self.rescan("Startup rescan")
            logging.info("Switching to watcher mode...")

        self.observer.start()

        minutes = self.settings.periodic_rescan_minutes
        if minutes > 0:
            self._timer_thread = threading.Thread(
                target=self._periodic_loop,
                args=(minutes * 60,),
                name="collector-rescan",
                daemon=True,
            )
            self._timer_thread.start()
            logging.info(f"Periodic rescan enabled (every {minutes} minutes)")

    def _periodic_loop(self, interval_sec: float):
        while not self._stop_event.wait(interval_sec):
            if not self.observer.is_running:
                # Source was unavailable when the watcher was last armed
                logging.info("Retrying to arm the watcher...")
                self.observer.start()
            try:
                self.rescan(f"Periodic rescan (every {self.settings.periodic_rescan_minutes} minutes)")
            except Exception:
                logging.exception("Error during periodic rescan")

    def stop(self):
        """Stops all triggers, lets in-flight copies finish, logs final totals."""
        self._stop_event.set()
        self.observer.stop()

        if self._timer_thread:
            # A running pass finishes its current sweep before the loop exits
            self._timer_thread.join()
            self._timer_thread = None

        if self.observer.dropped:
            logging.warning(f"{self.observer.dropped} watcher events were dropped due to a full buffer.")
        logging.info(f"Shutdown. Final statistics: {self.cumulative}")
        self.db_manager.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
