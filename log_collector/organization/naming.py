import uuid
from datetime import datetime, UTC
from pathlib import Path

from .. import config
from ..exceptions import CollisionExhaustedError
from ..models import RenameStrategy


def resolve_target_path(target_dir: Path,
                        file_name: str,
                        strategy: RenameStrategy,
                        max_attempts: int = config.MAX_COUNTER_ATTEMPTS) -> Path:
    """
    Returns a destination path in target_dir that does not exist yet.

    The natural name is used when free. Otherwise:
      counter   -> name_1.ext, name_2.ext, ... (bounded by max_attempts)
      timestamp -> name_<utc %Y%m%d%H%M%S%f>.ext, single attempt
      guid      -> name_<uuid4 hex>.ext, single attempt

    Only an existence check is made per candidate; the caller's exclusive
    create remains the authority if another writer takes the name meanwhile.
    """
    candidate = target_dir / file_name
    if not candidate.exists():
        return candidate

    stem = Path(file_name).stem
    ext = Path(file_name).suffix

    if strategy is RenameStrategy.TIMESTAMP:
        # Not retried on a second collision at the same microsecond
        stamp = datetime.now(UTC).strftime(config.TIMESTAMP_FORMAT)
        return target_dir / f"{stem}_{stamp}{ext}"

    if strategy is RenameStrategy.GUID:
        return target_dir / f"{stem}_{uuid.uuid4().hex}{ext}"

    for counter in range(1, max_attempts + 1):
        candidate = target_dir / f"{stem}_{counter}{ext}"
        if not candidate.exists():
            return candidate

    raise CollisionExhaustedError(
        f"No free name for {file_name} in {target_dir} after {max_attempts} attempts"
    )
