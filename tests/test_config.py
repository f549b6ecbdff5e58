import json
import logging
from pathlib import Path

import pytest

from log_collector import config
from log_collector.exceptions import ConfigError
from log_collector.models import RenameStrategy

def _write(tmp_path: Path, data) -> Path:
    p = tmp_path / "appsettings.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p

def test_defaults_applied(tmp_path):
    path = _write(tmp_path, {"sourceFolder": "/drop", "targetFolder": "/collected"})
    settings = config.load_settings(path)

    assert settings.source_folder == Path("/drop")
    assert settings.target_folder == Path("/collected")
    assert settings.filter == "*"
    assert settings.include_subdirectories is True
    assert settings.file_created_delay_ms == 500
    assert settings.rename_strategy is RenameStrategy.COUNTER
    assert settings.periodic_rescan_minutes == 0
    assert settings.database_path == tmp_path / "copied.db"
    assert settings.logging.path == tmp_path / "log.txt"
    assert settings.logging.level_value == logging.INFO
    assert settings.logging.retained_file_count_limit == 10

def test_pascal_case_keys(tmp_path):
    path = _write(tmp_path, {
        "SourceFolder": "\\\\tester01\\logs",
        "TargetFolder": "/collected",
        "Filter": "*.*",
        "IncludeSubdirectories": False,
        "FileCreatedDelayMs": 1500,
        "DatabasePath": "/var/lib/collector/state.db",
        "RenameStrategy": "GUID",
        "PeriodicRescanMinutes": 15,
        "Logging": {
            "LogFilePath": "logs/collector.txt",
            "LogLevel": "Debug",
            "RollingInterval": "Month",
            "RetainedFileCountLimit": 3,
            "Verbose": True,
        },
    })
    settings = config.load_settings(path)

    assert settings.source_is_network
    assert settings.filter == "*"
    assert settings.include_subdirectories is False
    assert settings.file_created_delay_ms == 1500
    assert settings.database_path == Path("/var/lib/collector/state.db")
    assert settings.rename_strategy is RenameStrategy.GUID
    assert settings.periodic_rescan_minutes == 15
    assert settings.logging.path == tmp_path / "logs" / "collector.txt"
    assert settings.logging.level_value == logging.DEBUG
    assert settings.logging.rolling_interval == "month"
    assert settings.logging.retained_file_count_limit == 3
    assert settings.logging.verbose is True

def test_unknown_strategy_rejected(tmp_path):
    path = _write(tmp_path, {"sourceFolder": "/a", "targetFolder": "/b", "renameStrategy": "random"})
    with pytest.raises(ConfigError, match="rename strategy"):
        config.load_settings(path)

@pytest.mark.parametrize("missing", ["sourceFolder", "targetFolder"])
def test_required_fields(tmp_path, missing):
    data = {"sourceFolder": "/a", "targetFolder": "/b"}
    del data[missing]
    with pytest.raises(ConfigError, match="Missing required"):
        config.load_settings(_write(tmp_path, data))

@pytest.mark.parametrize("key,value", [
    ("fileCreatedDelayMs", -1),
    ("periodicRescanMinutes", -5),
    ("includeSubdirectories", "yes"),
    ("watcherWorkers", 0),
])
def test_invalid_values(tmp_path, key, value):
    data = {"sourceFolder": "/a", "targetFolder": "/b", key: value}
    with pytest.raises(ConfigError):
        config.load_settings(_write(tmp_path, data))

def test_invalid_logging_values(tmp_path):
    data = {"sourceFolder": "/a", "targetFolder": "/b", "logging": {"rollingInterval": "fortnight"}}
    with pytest.raises(ConfigError, match="rolling interval"):
        config.load_settings(_write(tmp_path, data))

def test_bad_json(tmp_path):
    p = tmp_path / "appsettings.json"
    p.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        config.load_settings(p)

def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        config.load_settings(tmp_path / "nope.json")

def test_default_config_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv(config.CONFIG_ENV_VAR, str(tmp_path / "custom.json"))
    assert config.default_config_path() == tmp_path / "custom.json"

def test_network_prefixes():
    assert config.is_network_path("\\\\server\\share")
    assert config.is_network_path("//server/share")
    assert not config.is_network_path("/mnt/share")

def test_relative_folders_resolve_against_config_dir(tmp_path):
    path = _write(tmp_path, {"sourceFolder": "drop", "targetFolder": "//fileserver/collected"})
    settings = config.load_settings(path)

    assert settings.source_folder == tmp_path / "drop"
    assert str(settings.target_folder) == "//fileserver/collected"
    assert settings.source_is_network is False

def test_brace_style_log_template_rejected(tmp_path):
    data = {
        "sourceFolder": "/a",
        "targetFolder": "/b",
        "Logging": {"LogOutputTemplate": "[{Timestamp:HH:mm:ss} {Level:u3}] {Message:lj}{NewLine}{Exception}"},
    }
    with pytest.raises(ConfigError, match="log template"):
        config.load_settings(_write(tmp_path, data))

def test_custom_log_template_kept(tmp_path):
    data = {"sourceFolder": "/a", "targetFolder": "/b", "logging": {"template": "%(levelname)s %(message)s"}}
    assert config.load_settings(_write(tmp_path, data)).logging.template == "%(levelname)s %(message)s"

def test_config_path_is_directory(tmp_path):
    folder = tmp_path / "appsettings.json"
    folder.mkdir()
    with pytest.raises(ConfigError, match="Cannot read"):
        config.load_settings(folder)

def test_config_not_utf8(tmp_path):
    p = tmp_path / "appsettings.json"
    p.write_bytes(b'{"sourceFolder": "\xff\xfe\x80"}')
    with pytest.raises(ConfigError, match="UTF-8"):
        config.load_settings(p)
