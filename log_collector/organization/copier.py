import shutil
import stat
import logging
from pathlib import Path

from .. import config
from ..config import Appsettings
from ..database.ops import DBOperations
from ..exceptions import CollisionExhaustedError, DatabaseError
from ..models import CopyOutcome, FileIdentity
from .naming import resolve_target_path

class FileCopier:
    """
    Decides new-vs-duplicate for one candidate file and copies it into the target.
    Both the scanner and the change observer funnel every file through here.
    """
    def __init__(self, settings: Appsettings, db_ops: DBOperations):
        self.settings = settings
        self.db = db_ops

    def handle_candidate(self, source_path) -> CopyOutcome:
        """
        Copies source_path into the target folder unless this exact
        (path, mtime, size) version was copied before.

        The identity is recorded only after the bytes are on disk, so a failed
        copy is never remembered and is retried on the next observation.
        Store failures raise DatabaseError; everything else maps to an outcome.
        """
        src = Path(source_path).absolute()
        try:
            try:
                st = src.stat()
            except (FileNotFoundError, NotADirectoryError):
                self._log_skip(f"Skipped (not found): {src}")
                return CopyOutcome.SKIPPED_MISSING

            if not stat.S_ISREG(st.st_mode):
                self._log_skip(f"Skipped (not a regular file): {src}")
                return CopyOutcome.SKIPPED_MISSING

            identity = FileIdentity.from_stat(src, st)
            if self.db.contains(identity):
                self._log_skip(f"Skipped (already copied): {src}")
                return CopyOutcome.SKIPPED_DUPLICATE

            target_dir = self.settings.target_folder
            target_dir.mkdir(parents=True, exist_ok=True)

            dest = resolve_target_path(target_dir, src.name, self.settings.rename_strategy)
            try:
                self._copy_exclusive(src, dest)
            except FileNotFoundError:
                if not src.exists():
                    self._log_skip(f"Skipped (vanished during copy): {src}")
                    return CopyOutcome.SKIPPED_MISSING
                raise

            self.db.insert(identity, str(dest))
            logging.info(f"Copied {src} -> {dest}")
            return CopyOutcome.COPIED

        except DatabaseError:
            raise
        except CollisionExhaustedError as e:
            logging.error(f"Could not find a free target name for {src}: {e}")
        except FileExistsError as e:
            # Another writer took the resolved name between check and create
            logging.error(f"Target name taken concurrently while copying {src}: {e}")
        except PermissionError as e:
            if self.settings.source_is_network:
                logging.error(f"Network permission issue copying {src} from {self.settings.source_folder}: {e}")
            else:
                logging.error(f"Permission issue copying {src}: {e}")
        except OSError as e:
            if self.settings.source_is_network:
                logging.error(f"Network I/O error copying {src} (share offline, transient lock, or path changed): {e}")
            else:
                logging.error(f"I/O error copying {src}: {e}")
        except Exception:
            logging.exception(f"Unexpected error copying {src}")
        return CopyOutcome.ERROR

    def _copy_exclusive(self, src: Path, dest: Path):
        """Copies bytes without ever overwriting; a partial destination is removed."""
        with open(src, "rb") as fsrc:
            fdst = open(dest, "xb")
            try:
                with fdst:
                    shutil.copyfileobj(fsrc, fdst, config.COPY_CHUNK_SIZE)
            except Exception:
                dest.unlink(missing_ok=True)
                raise

        try:
            shutil.copystat(src, dest)
        except OSError as e:
            # Bytes are complete; shares often refuse timestamp/mode changes
            logging.debug(f"Could not copy metadata to {dest}: {e}")

    def _log_skip(self, message: str):
        if self.settings.logging.verbose:
            logging.info(message)
        else:
            logging.debug(message)
