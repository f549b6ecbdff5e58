import threading
from datetime import datetime, timedelta, UTC

import pytest

from log_collector.database.db import DBManager
from log_collector.database.ops import DBOperations
from log_collector.exceptions import DatabaseError
from log_collector.models import FileIdentity

T1 = datetime(2024, 3, 1, 12, 30, 45, 123456, tzinfo=UTC)

def _identity(path="/drop/a.log", mtime=T1, length=500):
    return FileIdentity(path, mtime, length)

def test_insert_then_contains(db_ops):
    ident = _identity()
    assert not db_ops.contains(ident)

    assert db_ops.insert(ident, "/target/a.log") is True
    assert db_ops.contains(ident)

def test_insert_is_idempotent(db_ops):
    """Second insert of the same tuple is a silent no-op."""
    ident = _identity()
    assert db_ops.insert(ident) is True
    assert db_ops.insert(ident) is False

    assert db_ops.contains(ident)
    assert db_ops.count() == 1

def test_identity_sensitivity(db_ops):
    db_ops.insert(_identity())

    assert not db_ops.contains(_identity(length=501))
    assert not db_ops.contains(_identity(mtime=T1 + timedelta(seconds=1)))
    assert not db_ops.contains(_identity(path="/drop/b.log"))

def test_reset_clears_all_history(db_ops):
    db_ops.insert(_identity())
    db_ops.insert(_identity(path="/drop/b.log"))

    assert db_ops.reset() == 2
    assert not db_ops.contains(_identity())
    assert db_ops.count() == 0

    # Eligible again after reset
    assert db_ops.insert(_identity()) is True

def test_recent_and_versions(db_ops):
    db_ops.insert(_identity(), "/target/a.log")
    db_ops.insert(_identity(length=900), "/target/a_1.log")

    recent = db_ops.recent(10)
    assert [r[3] for r in recent] == ["/target/a_1.log", "/target/a.log"]

    versions = db_ops.versions_of("/drop/a.log")
    assert [v[1] for v in versions] == [500, 900]

def test_survives_restart(tmp_path):
    db_path = tmp_path / "state" / "copied.db"
    ident = _identity()

    with DBManager(db_path) as conn:
        DBOperations(conn).insert(ident)

    assert db_path.exists()

    with DBManager(db_path) as conn:
        ops = DBOperations(conn)
        assert ops.contains(ident)
        assert ops.count() == 1

def test_schema_version_recorded(conn):
    cur = conn.cursor()
    cur.execute("SELECT version FROM schema_version")
    assert cur.fetchone()[0] == 1

def test_concurrent_inserts_keep_one_record(tmp_path):
    manager = DBManager(tmp_path / "copied.db")
    ops = DBOperations(manager.connect(), manager.lock)
    ident = _identity()
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(ops.insert(ident))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    try:
        assert results.count(True) == 1
        assert ops.count() == 1
    finally:
        manager.close()

def test_storage_failure_propagates(conn):
    ops = DBOperations(conn)
    conn.execute("DROP TABLE copied_files")

    with pytest.raises(DatabaseError):
        ops.contains(_identity())
    with pytest.raises(DatabaseError):
        ops.insert(_identity())
