"""Unit tests for configuration loading."""
from __future__ import annotations

from pathlib import Path

import pytest

from s3_streamlogger.config import ConfigLoader, StreamLoggerConfig, config_from_env
from s3_streamlogger.factory import load_config


def test_defaults():
    config = StreamLoggerConfig(bucket="b", environment="prod", hostname="web01")
    assert config.upload_delay == 20000
    assert config.buffer_size == 10000
    assert config.rotate_every == 3600000
    assert config.max_file_size == 200000
    assert config.compress is False
    assert config.save_logs_in_json is False
    assert config.tags == {}
    assert config.resolved_name_format() == "%Y-%b-%d-%H-%M-prod-web01.log"


def test_environment_defaults_to_process_env(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "staging")
    assert StreamLoggerConfig(bucket="b").environment == "staging"
    monkeypatch.delenv("ENVIRONMENT")
    assert StreamLoggerConfig(bucket="b").environment == "development"


def test_rejects_empty_bucket_and_non_positive_thresholds():
    with pytest.raises(ValueError):
        StreamLoggerConfig(bucket=" ")
    with pytest.raises(ValueError):
        StreamLoggerConfig(bucket="b", buffer_size=0)


def test_config_loader_reads_nested_section(tmp_path: Path) -> None:
    config_payload = """
    s3_streamlogger:
      bucket: app-logs
      folder: api
      upload_delay: 5000
      compress: true
      tags:
        team: platform
        version: 3
    """
    config_file = tmp_path / "config.yaml"
    config_file.write_text(config_payload)

    config = ConfigLoader(path=config_file).model

    assert config.bucket == "app-logs"
    assert config.folder == "api"
    assert config.upload_delay == 5000
    assert config.compress is True
    assert config.tags == {"team": "platform", "version": "3"}


def test_config_loader_reports_invalid_files(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("folder: api\n")
    with pytest.raises(ValueError, match="Invalid configuration"):
        ConfigLoader(path=config_file)
    with pytest.raises(FileNotFoundError):
        ConfigLoader(path=tmp_path / "missing.yaml")


def test_config_from_env():
    config = config_from_env(
        {
            "S3_STREAMLOGGER_BUCKET": "env-bucket",
            "S3_STREAMLOGGER_BUFFER_SIZE": "2048",
            "S3_STREAMLOGGER_COMPRESS": "true",
            "S3_STREAMLOGGER_TAGS": "team=platform, env=prod,broken",
            "S3_STREAMLOGGER_ENDPOINT_URL": "http://localhost:9000",
        }
    )
    assert config.bucket == "env-bucket"
    assert config.buffer_size == 2048
    assert config.compress is True
    assert config.tags == {"team": "platform", "env": "prod"}
    assert config.endpoint_url == "http://localhost:9000"


def test_config_from_env_requires_bucket():
    with pytest.raises(RuntimeError):
        config_from_env({})
    assert config_from_env({}, overrides={"bucket": "cli"}).bucket == "cli"


def test_load_config_applies_overrides_to_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("bucket: from-file\nfolder: a\nbuffer_size: 100\n")
    config = load_config(config_file, folder="b", bucket=None)
    assert config.bucket == "from-file"
    assert config.folder == "b"
    assert config.buffer_size == 100
