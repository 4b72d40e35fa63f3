"""Tests for reading the configuration file."""

import pathlib

import pytest

from kube_state.config import ExporterConfig, parse_config, read_config
from kube_state.exceptions import ConfigException

CONFIG = """\
resources:
- pods
- deployments
namespaces:
- default
field_selector: metadata.name!=skip
metric_filter:
  deny:
  - kube_pod_labels
labels_allow_list:
  pods:
  - app
reflector:
  resync_backoff_max: 10.0
server:
  port: 9090
"""


def test_parse_config() -> None:
    """Test parsing a configuration file."""
    config = parse_config(CONFIG)
    assert config.resources == ["pods", "deployments"]
    assert config.namespaces == ["default"]
    assert config.field_selector == "metadata.name!=skip"
    assert config.metric_filter.allow == []
    assert config.metric_filter.deny == ["kube_pod_labels"]
    assert config.metric_filter.default_admit is None
    assert config.labels_allow_list == {"pods": ["app"]}
    assert config.annotations_allow_list == {}
    assert config.reflector.resync_backoff_initial == 1.0
    assert config.reflector.resync_backoff_max == 10.0
    assert config.server.host == "0.0.0.0"
    assert config.server.port == 9090


def test_parse_empty_config() -> None:
    """Test an empty file results in the default configuration."""
    assert parse_config("") == ExporterConfig()
    assert parse_config("\n") == ExporterConfig()


def test_parse_unknown_key() -> None:
    """Test an unknown key is rejected."""
    with pytest.raises(ConfigException, match="Invalid configuration"):
        parse_config("resource:\n- pods\n")


def test_parse_invalid_value() -> None:
    """Test a value of the wrong type is rejected."""
    with pytest.raises(ConfigException, match="Invalid configuration"):
        parse_config("server:\n  port: not-a-port\n")


async def test_read_config(tmp_path: pathlib.Path) -> None:
    """Test reading a configuration file from disk."""
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)
    config = await read_config(path)
    assert config.resources == ["pods", "deployments"]


async def test_read_missing_config(tmp_path: pathlib.Path) -> None:
    """Test reading a missing configuration file."""
    with pytest.raises(ConfigException, match="Unable to read configuration file"):
        await read_config(tmp_path / "missing.yaml")
