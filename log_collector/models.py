import enum
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, UTC
from pathlib import Path


class RenameStrategy(enum.Enum):
    """How to name a file whose natural name is already taken in the target."""
    COUNTER = "counter"
    TIMESTAMP = "timestamp"
    GUID = "guid"


class CopyOutcome(enum.Enum):
    COPIED = "copied"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    SKIPPED_MISSING = "skipped_missing"
    ERROR = "error"


@dataclass(frozen=True)
class FileIdentity:
    """
    A specific version of a file at a path.
    Same path with a different mtime or size is a different identity.
    """
    full_path: str
    last_write_time_utc: datetime
    length: int

    @classmethod
    def from_stat(cls, path: Path, stat_result: os.stat_result) -> "FileIdentity":
        mtime = datetime.fromtimestamp(stat_result.st_mtime, UTC)
        return cls(str(path), mtime, stat_result.st_size)

    @property
    def mtime_key(self) -> str:
        """ISO-8601 form used as the persisted timestamp column."""
        return self.last_write_time_utc.astimezone(UTC).isoformat(timespec="microseconds")


@dataclass
class ProcessingStats:
    """
    Counters for one window (a scan pass, a watcher event, or the process lifetime).
    All mutation goes through the lock so timer and watcher threads can share an instance.
    """
    scanned: int = 0
    copied: int = 0
    skipped: int = 0
    errors: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def mark_scanned(self, n: int = 1):
        with self._lock:
            self.scanned += n

    def mark_error(self, n: int = 1):
        with self._lock:
            self.errors += n

    def record(self, outcome: CopyOutcome):
        with self._lock:
            if outcome is CopyOutcome.COPIED:
                self.copied += 1
            elif outcome is CopyOutcome.ERROR:
                self.errors += 1
            else:
                self.skipped += 1

    def merge(self, other: "ProcessingStats"):
        """Folds another window's counters into this one."""
        snap = other.snapshot()
        with self._lock:
            self.scanned += snap.scanned
            self.copied += snap.copied
            self.skipped += snap.skipped
            self.errors += snap.errors

    def snapshot(self) -> "ProcessingStats":
        with self._lock:
            return ProcessingStats(self.scanned, self.copied, self.skipped, self.errors)

    def __str__(self) -> str:
        snap = self.snapshot()
        return f"Scanned={snap.scanned}, Copied={snap.copied}, Skipped={snap.skipped}, Errors={snap.errors}"
