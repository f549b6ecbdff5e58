import argparse
import logging
import logging.handlers
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from . import config
from .config import LoggingSettings
from .core import CollectorService
from .exceptions import ConfigError

def setup_logging(log_settings: LoggingSettings, verbose: bool = False):
    """Sets up logging to both console and a rolling log file."""
    log_level = logging.DEBUG if verbose else log_settings.level_value

    log_file = log_settings.path
    log_file.parent.mkdir(parents=True, exist_ok=True)

    rolling = config.ROLLING_INTERVALS[log_settings.rolling_interval]
    if rolling is None:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
    else:
        when, interval = rolling
        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when=when,
            interval=interval,
            backupCount=log_settings.retained_file_count_limit,
            encoding='utf-8',
            utc=True,
        )

    logging.basicConfig(
        level=log_level,
        format=log_settings.template,
        handlers=[
            file_handler,
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("watchdog").setLevel(logging.WARNING)

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Log File Collector: copy new files from a drop folder exactly once")

    p.add_argument("--config", type=Path, default=None,
                   help=f"Path to appsettings.json (default: ${config.CONFIG_ENV_VAR} or {config.DEFAULT_CONFIG_PATH})")
    p.add_argument("--reset", action="store_true", help="Forget all previously copied files before starting")
    p.add_argument("--rescan", action="store_true", help="Run one full scan at startup before watching")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)

    # 1. Config
    config_path = args.config or config.default_config_path()
    try:
        settings = config.load_settings(config_path)
    except FileNotFoundError:
        print(f"Config not found: {config_path}", file=sys.stderr)
        return 2
    except ConfigError as e:
        print(f"Invalid configuration in {config_path}: {e}", file=sys.stderr)
        return 1

    # 2. Setup
    try:
        setup_logging(settings.logging, args.verbose)
    except OSError as e:
        print(f"Cannot open log file {settings.logging.path}: {e}", file=sys.stderr)
        return 1

    logging.info("=== Log File Collector Started ===")
    logging.info(f"Source:   {settings.source_folder}")
    logging.info(f"Target:   {settings.target_folder}")
    logging.info(f"Database: {settings.database_path}")
    logging.info(f"Rename strategy: {settings.rename_strategy.value}")

    shutdown = threading.Event()

    def request_shutdown(signum, frame):
        logging.info(f"Received signal {signum}, shutting down...")
        shutdown.set()

    signal.signal(signal.SIGINT, request_shutdown)
    signal.signal(signal.SIGTERM, request_shutdown)

    # 3. Execution
    service: Optional[CollectorService] = None
    try:
        service = CollectorService(settings)
        if args.reset:
            service.reset()

        service.start(rescan=args.rescan)
        logging.info("Watcher running. Press Ctrl+C to stop.")

        # Event.wait with a timeout keeps the main thread responsive to signals
        while not shutdown.wait(1.0):
            pass
    except Exception:
        logging.exception("Fatal error during startup.")
        return 1
    finally:
        if service is not None:
            service.stop()

    return 0

if __name__ == "__main__":
    sys.exit(main())
