"""
Configuration constants and the appsettings.json loader for the log collector.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigError
from .models import RenameStrategy

# --- Locations ---
APP_DIR = Path.home() / ".log_collector"
DEFAULT_CONFIG_PATH = APP_DIR / "appsettings.json"
CONFIG_ENV_VAR = "LOG_COLLECTOR_CONFIG"

# --- Defaults ---
DEFAULT_FILTER = "*"
DEFAULT_CREATED_DELAY_MS = 500
DEFAULT_DB_NAME = "copied.db"
DEFAULT_LOG_NAME = "log.txt"
DEFAULT_LOG_TEMPLATE = "%(asctime)s [%(levelname)s] %(message)s"
DEFAULT_RETAINED_LOGS = 10
DEFAULT_WATCHER_WORKERS = 4
# Pending watcher events beyond this are dropped and left to the periodic rescan
DEFAULT_EVENT_BUFFER_SIZE = 8192

# --- Naming ---
MAX_COUNTER_ATTEMPTS = 1_000_000
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S%f"

# --- Copying ---
COPY_CHUNK_SIZE = 1024 * 1024  # 1 MB

# --- Network shares ---
# Source folders starting with these are treated as network locations for diagnostics
NETWORK_PREFIXES = ("\\\\", "//")

LOG_LEVELS = {
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# rolling interval -> (TimedRotatingFileHandler "when", interval); None means no rotation
ROLLING_INTERVALS = {
    "hour": ("H", 1),
    "day": ("midnight", 1),
    "month": ("D", 30),
    "year": ("D", 365),
    "infinite": None,
}


@dataclass
class LoggingSettings:
    path: Path = Path(DEFAULT_LOG_NAME)
    template: str = DEFAULT_LOG_TEMPLATE
    level: str = "information"
    rolling_interval: str = "day"
    retained_file_count_limit: int = DEFAULT_RETAINED_LOGS
    # Bubble per-file skip lines up to INFO
    verbose: bool = False

    @property
    def level_value(self) -> int:
        return LOG_LEVELS[self.level]


@dataclass
class Appsettings:
    source_folder: Path
    target_folder: Path
    filter: str = DEFAULT_FILTER
    include_subdirectories: bool = True
    file_created_delay_ms: int = DEFAULT_CREATED_DELAY_MS
    database_path: Path = Path(DEFAULT_DB_NAME)
    rename_strategy: RenameStrategy = RenameStrategy.COUNTER
    periodic_rescan_minutes: float = 0
    watch_modified: bool = False
    watcher_workers: int = DEFAULT_WATCHER_WORKERS
    event_buffer_size: int = DEFAULT_EVENT_BUFFER_SIZE
    show_progress: bool = False
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def source_is_network(self) -> bool:
        return is_network_path(self.source_folder)


def is_network_path(path) -> bool:
    return str(path).startswith(NETWORK_PREFIXES)


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV_VAR)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def _lower_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    # appsettings files are written in PascalCase or camelCase
    return {str(k).lower(): v for k, v in raw.items()}


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"'{name}' must be true or false, got {value!r}")


def _as_int(value: Any, name: str, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{name}' must be a number, got {value!r}")
    if value < minimum:
        raise ConfigError(f"'{name}' must be >= {minimum}, got {value}")
    return int(value)


def _resolve(path_str: str, base_dir: Path) -> Path:
    p = Path(path_str).expanduser()
    return p if p.is_absolute() or is_network_path(path_str) else base_dir / p


def parse_logging(raw: Optional[Dict[str, Any]], base_dir: Path) -> LoggingSettings:
    raw = _lower_keys(raw or {})
    settings = LoggingSettings()

    path = raw.get("path", raw.get("logfilepath"))
    settings.path = _resolve(path or DEFAULT_LOG_NAME, base_dir)
    template = raw.get("template", raw.get("logoutputtemplate")) or DEFAULT_LOG_TEMPLATE
    try:
        logging.Formatter(template, validate=True)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid log template {template!r} (expected %-style fields such as %(message)s): {e}") from None
    settings.template = template

    level = str(raw.get("level", raw.get("loglevel")) or "information").strip().lower()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level '{level}' (expected one of {sorted(LOG_LEVELS)})")
    settings.level = level

    interval = str(raw.get("rollinginterval") or "day").strip().lower()
    if interval not in ROLLING_INTERVALS:
        raise ConfigError(f"Unknown rolling interval '{interval}' (expected one of {sorted(ROLLING_INTERVALS)})")
    settings.rolling_interval = interval

    if "retainedfilecountlimit" in raw:
        settings.retained_file_count_limit = _as_int(raw["retainedfilecountlimit"], "retainedFileCountLimit")
    if "verbose" in raw:
        settings.verbose = _as_bool(raw["verbose"], "logging.verbose")
    return settings


def parse_settings(raw: Dict[str, Any], base_dir: Path) -> Appsettings:
    """
    Builds validated Appsettings from a decoded appsettings.json object.
    Relative source, target, database and log paths are resolved against base_dir.
    """
    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a JSON object")
    raw = _lower_keys(raw)

    for required in ("sourcefolder", "targetfolder"):
        if not raw.get(required):
            raise ConfigError(f"Missing required setting '{required}'")

    strategy_name = str(raw.get("renamestrategy") or "counter").strip().lower()
    try:
        strategy = RenameStrategy(strategy_name)
    except ValueError:
        raise ConfigError(
            f"Unknown rename strategy '{strategy_name}' (expected one of {[s.value for s in RenameStrategy]})"
        ) from None

    pattern = str(raw.get("filter") or DEFAULT_FILTER)
    if pattern == "*.*":
        # Windows "everything" glob; fnmatch would require a dot
        pattern = DEFAULT_FILTER

    settings = Appsettings(
        source_folder=_resolve(str(raw["sourcefolder"]), base_dir),
        target_folder=_resolve(str(raw["targetfolder"]), base_dir),
        filter=pattern,
        rename_strategy=strategy,
        database_path=_resolve(raw.get("databasepath") or DEFAULT_DB_NAME, base_dir),
        logging=parse_logging(raw.get("logging"), base_dir),
    )

    if "includesubdirectories" in raw:
        settings.include_subdirectories = _as_bool(raw["includesubdirectories"], "includeSubdirectories")
    if "filecreateddelayms" in raw:
        settings.file_created_delay_ms = _as_int(raw["filecreateddelayms"], "fileCreatedDelayMs")
    if "periodicrescanminutes" in raw:
        value = raw["periodicrescanminutes"]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigError(f"'periodicRescanMinutes' must be a number >= 0, got {value!r}")
        settings.periodic_rescan_minutes = value
    if "watchmodified" in raw:
        settings.watch_modified = _as_bool(raw["watchmodified"], "watchModified")
    if "watcherworkers" in raw:
        settings.watcher_workers = _as_int(raw["watcherworkers"], "watcherWorkers", minimum=1)
    if "eventbuffersize" in raw:
        settings.event_buffer_size = _as_int(raw["eventbuffersize"], "eventBufferSize", minimum=1)
    if "showprogress" in raw:
        settings.show_progress = _as_bool(raw["showprogress"], "showProgress")

    return settings


def load_settings(path: Path) -> Appsettings:
    """Loads and validates appsettings.json. Raises FileNotFoundError or ConfigError."""
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    try:
        with path.open("r", encoding="utf-8-sig") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"Config file {path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    return parse_settings(raw, path.absolute().parent)
