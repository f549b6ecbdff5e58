import os
import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from watchdog.events import PatternMatchingEventHandler
from watchdog.observers import Observer

from ..config import Appsettings
from ..models import ProcessingStats
from ..organization.copier import FileCopier
from ..scanning.filesystem import matches_filter


class CollectorEventHandler(PatternMatchingEventHandler):
    def __init__(self, change_observer: "ChangeObserver"):
        settings = change_observer.settings
        super().__init__(
            patterns=[settings.filter],
            ignore_directories=True,
            case_sensitive=False,
        )
        self.change_observer = change_observer
        self.watch_modified = settings.watch_modified

    def on_created(self, event):
        self.change_observer.submit(os.fsdecode(event.src_path))

    def on_moved(self, event):
        # Renamed into place: the new name is what lands in the folder
        dest = os.fsdecode(event.dest_path)
        if matches_filter(os.path.basename(dest), self.change_observer.settings.filter):
            self.change_observer.submit(dest)

    def on_modified(self, event):
        if self.watch_modified:
            self.change_observer.submit(os.fsdecode(event.src_path))


class ChangeObserver:
    """
    Feeds live filesystem notifications to the copier.

    watchdog delivers events on a single dispatcher thread, so each event is
    handed to a worker pool where the settle delay is served. At most
    `event_buffer_size` events may be pending; beyond that new events are
    dropped with a warning and left to the next rescan.
    """

    def __init__(self,
                 settings: Appsettings,
                 copier: FileCopier,
                 on_result: Optional[Callable[[ProcessingStats], None]] = None):
        self.settings = settings
        self.copier = copier
        self.on_result = on_result
        self.dropped = 0

        self._observer: Optional[Observer] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._slots = threading.BoundedSemaphore(settings.event_buffer_size)
        self._accepting = False
        self._guard = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._accepting

    def start(self) -> bool:
        """
        Arms the watcher. Returns False if the source folder is missing, leaving
        the observer unarmed; CollectorService retries on each periodic rescan.
        """
        source = self.settings.source_folder
        try:
            available = source.is_dir()
        except OSError as e:
            logging.error(f"Cannot access source folder {source}: {e}")
            return False
        if not available:
            logging.error(f"Source folder not found: {source}")
            return False

        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.watcher_workers,
            thread_name_prefix="collector-watch",
        )

        observer = Observer()
        observer.schedule(
            CollectorEventHandler(self),
            str(source),
            recursive=self.settings.include_subdirectories,
        )
        self._accepting = True
        observer.start()
        self._observer = observer

        logging.info(
            f"Watching {source} (Filter={self.settings.filter}, "
            f"Subdirs={self.settings.include_subdirectories}, "
            f"DelayMs={self.settings.file_created_delay_ms})"
        )
        return True

    def submit(self, path: str):
        with self._guard:
            if not self._accepting:
                return
            if not self._slots.acquire(blocking=False):
                self.dropped += 1
                logging.warning(
                    f"Event buffer full ({self.settings.event_buffer_size} pending), dropping event for {path}. "
                    "It will be picked up by the next rescan."
                )
                return
            try:
                self._executor.submit(self._process_event, path)
            except RuntimeError:
                # Executor already shut down
                self._slots.release()

    def _process_event(self, path: str):
        stats = ProcessingStats()
        try:
            # Let the writer finish; protects against sharing violations/partial writes
            delay_ms = self.settings.file_created_delay_ms
            if delay_ms > 0:
                time.sleep(delay_ms / 1000.0)

            stats.mark_scanned()
            stats.record(self.copier.handle_candidate(path))
        except Exception:
            stats.mark_error()
            logging.exception(f"Watcher error for {path}")
        finally:
            self._slots.release()

        logging.info(f"Watcher event for {path}: {stats}")
        if self.on_result:
            try:
                self.on_result(stats)
            except Exception:
                logging.exception("Failed to record watcher statistics")

    def stop(self):
        """Stops accepting events and waits for in-flight copies to finish."""
        with self._guard:
            self._accepting = False

        if self._observer:
            try:
                self._observer.stop()
                self._observer.join()
            except Exception:
                logging.exception("Failed to stop observer cleanly.")
            finally:
                self._observer = None

        if self._executor:
            self._executor.shutdown(wait=True)
            self._executor = None
