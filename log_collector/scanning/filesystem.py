import os
import logging
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator

from tqdm import tqdm

from ..config import Appsettings
from ..exceptions import EnumerationError
from ..models import ProcessingStats
from ..organization.copier import FileCopier

def matches_filter(name: str, pattern: str) -> bool:
    """Case-insensitive glob match against a bare file name."""
    return fnmatchcase(name.lower(), pattern.lower())


class DiskScanner:
    def __init__(self, settings: Appsettings, copier: FileCopier):
        self.settings = settings
        self.copier = copier

    def run_full_scan(self) -> ProcessingStats:
        """
        Feeds every matching file under the source folder to the copier, sequentially.

        `scanned` counts every enumerated path whatever its outcome. If the tree
        cannot be listed the pass stops with one error and whatever it had counted.
        """
        stats = ProcessingStats()
        root = self.settings.source_folder

        try:
            if not root.is_dir():
                raise EnumerationError(f"Source folder not found: {root}")

            paths = self.iter_candidates(root)
            for path in tqdm(paths, desc="Scanning", unit="file", disable=not self.settings.show_progress):
                stats.mark_scanned()
                stats.record(self.copier.handle_candidate(path))

        except EnumerationError as e:
            stats.mark_error()
            logging.error(str(e))
        except PermissionError as e:
            stats.mark_error()
            if self.settings.source_is_network:
                logging.error(f"Access denied to network source folder: {root}. Check share perms or the task account. ({e})")
            else:
                logging.error(f"Access denied reading source folder: {root} ({e})")
        except OSError as e:
            stats.mark_error()
            if self.settings.source_is_network:
                logging.error(f"Network share issue reading {root} (unavailable, offline, or path changed): {e}")
            else:
                logging.error(f"I/O error while scanning source folder {root}: {e}")
        except Exception:
            stats.mark_error()
            logging.exception(f"Unexpected error scanning source folder {root}")

        logging.info(f"Processing summary: {stats}")
        return stats

    def iter_candidates(self, root: Path) -> Iterator[Path]:
        for path in self._iter_files(root):
            if matches_filter(path.name, self.settings.filter):
                yield path

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """
        Depth-first walker using os.scandir for speed.
        Listing errors propagate; the caller treats them as a failed pass.
        """
        stack = [root]
        while stack:
            current = stack.pop()

            with os.scandir(current) as it:
                entries = list(it)

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file():
                    files.append(Path(e.path))

            if self.settings.include_subdirectories:
                # Push dirs to stack (reversed so we process A before Z)
                for d in reversed(dirs):
                    stack.append(d)

            for f in files:
                yield f
