import re

import pytest

from log_collector.exceptions import CollisionExhaustedError
from log_collector.models import RenameStrategy
from log_collector.organization.naming import resolve_target_path

def test_free_name_is_unchanged(tmp_path):
    assert resolve_target_path(tmp_path, "report.txt", RenameStrategy.COUNTER) == tmp_path / "report.txt"

def test_counter_is_deterministic(tmp_path):
    (tmp_path / "report.txt").write_text("x")
    assert resolve_target_path(tmp_path, "report.txt", RenameStrategy.COUNTER) == tmp_path / "report_1.txt"

    (tmp_path / "report_1.txt").write_text("x")
    assert resolve_target_path(tmp_path, "report.txt", RenameStrategy.COUNTER) == tmp_path / "report_2.txt"

def test_counter_without_extension(tmp_path):
    (tmp_path / "README").write_text("x")
    assert resolve_target_path(tmp_path, "README", RenameStrategy.COUNTER) == tmp_path / "README_1"

def test_counter_splits_last_suffix(tmp_path):
    (tmp_path / "archive.tar.gz").write_text("x")
    result = resolve_target_path(tmp_path, "archive.tar.gz", RenameStrategy.COUNTER)
    assert result == tmp_path / "archive.tar_1.gz"

def test_counter_exhaustion(tmp_path):
    for name in ("a.log", "a_1.log", "a_2.log"):
        (tmp_path / name).write_text("x")

    with pytest.raises(CollisionExhaustedError):
        resolve_target_path(tmp_path, "a.log", RenameStrategy.COUNTER, max_attempts=2)

def test_timestamp_strategy(tmp_path):
    (tmp_path / "run.csv").write_text("x")
    result = resolve_target_path(tmp_path, "run.csv", RenameStrategy.TIMESTAMP)

    assert result.parent == tmp_path
    assert re.fullmatch(r"run_\d{20}\.csv", result.name)

def test_guid_strategy(tmp_path):
    (tmp_path / "run.csv").write_text("x")
    first = resolve_target_path(tmp_path, "run.csv", RenameStrategy.GUID)
    second = resolve_target_path(tmp_path, "run.csv", RenameStrategy.GUID)

    assert re.fullmatch(r"run_[0-9a-f]{32}\.csv", first.name)
    assert first != second
