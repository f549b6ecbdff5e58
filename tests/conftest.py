import pytest
import sqlite3
from log_collector.config import Appsettings
from log_collector.database.schema import init_schema
from log_collector.database.ops import DBOperations
from log_collector.organization.copier import FileCopier

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def source_dir(tmp_path):
    d = tmp_path / "src"
    d.mkdir()
    return d

@pytest.fixture
def target_dir(tmp_path):
    return tmp_path / "dst"

@pytest.fixture
def make_settings(tmp_path, source_dir, target_dir):
    """Factory for Appsettings pointing at the temp source/target dirs."""
    def _make(**overrides):
        values = dict(
            source_folder=source_dir,
            target_folder=target_dir,
            database_path=tmp_path / "copied.db",
            file_created_delay_ms=0,
        )
        values.update(overrides)
        return Appsettings(**values)
    return _make

@pytest.fixture
def copier(make_settings, db_ops):
    return FileCopier(make_settings(), db_ops)
