#!/usr/bin/env python

import argparse
import sqlite3
from pathlib import Path

from log_collector.database.ops import DBOperations


def connect_db(db_path: Path) -> sqlite3.Connection:
    if not db_path.exists():
        raise SystemExit(f"DB not found: {db_path}")
    return sqlite3.connect(db_path)


def show_count(db: DBOperations):
    print(f"Copied file versions recorded: {db.count()}")


def list_recent(db: DBOperations, limit: int):
    rows = db.recent(limit)
    if not rows:
        print("No copied files recorded.")
        return

    print("copied_at                        | length     | last_write_time_utc              | source -> target")
    print("---------------------------------+------------+----------------------------------+-----------------")
    for full_path, mtime, length, target, copied_at in rows:
        print(f"{copied_at.ljust(32)} | {str(length).rjust(10)} | {mtime.ljust(32)} | {full_path} -> {target or '?'}")


def lookup_path(db: DBOperations, path: Path):
    candidates = [str(path), str(path.absolute())]
    rows = []
    for cand in dict.fromkeys(candidates):
        rows = db.versions_of(cand)
        if rows:
            path = Path(cand)
            break

    if not rows:
        print(f"No copied versions recorded for: {path}")
        return

    print(f"Copied versions of {path}:")
    for mtime, length, target, copied_at in rows:
        print(f"  mtime={mtime}  length={length}  target={target or '?'}  copied_at={copied_at}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Query helper for the log collector's copied-files DB.")
    p.add_argument("--db", required=True, help="Path to copied.db (the collector's databasePath)")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--count", action="store_true", help="Show how many file versions have been copied")
    group.add_argument("--recent", type=int, metavar="N", help="List the N most recently copied files")
    group.add_argument("--lookup", help="Show every copied version of a source path")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    db_path = Path(args.db).resolve()
    conn = connect_db(db_path)

    try:
        db = DBOperations(conn)
        if args.count:
            show_count(db)
        elif args.recent is not None:
            list_recent(db, args.recent)
        elif args.lookup:
            lookup_path(db, Path(args.lookup))
    finally:
        conn.close()


if __name__ == "__main__":
    main()
