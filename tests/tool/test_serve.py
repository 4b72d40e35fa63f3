"""Tests for the kube-state serve action."""

import asyncio
from collections.abc import AsyncGenerator
import pathlib
from unittest.mock import patch

import pytest

from kube_state.config import ExporterConfig, parse_config
from kube_state.exceptions import ConfigException
from kube_state.listwatch import ListerWatcher, ObjectList, WatchEvent
from kube_state.registry import DEFAULT_REGISTRY, KindSpec
from kube_state.task import TaskServiceImpl
from kube_state.tool import serve
from kube_state.tool.kube_state import _make_parser, main


class EmptyListerWatcher(ListerWatcher):
    """Source without objects and an idle watch."""

    def __init__(self) -> None:
        self._events: list[WatchEvent] = []

    @property
    def description(self) -> str:
        return "empty"

    async def list(self) -> ObjectList:
        return ObjectList()

    async def watch(self, resource_version: str) -> AsyncGenerator[WatchEvent, None]:
        for event in self._events:
            yield event
        await asyncio.Event().wait()


def _factory(spec: KindSpec, namespace: str, field_selector: str | None) -> ListerWatcher:
    return EmptyListerWatcher()


def test_parser() -> None:
    """Test parsing the serve command line."""
    args = _make_parser().parse_args(
        [
            "serve",
            "--config",
            "config.yaml",
            "--resources",
            "pods,services",
            "--port",
            "9000",
            "--in-cluster",
        ]
    )
    assert args.cls is serve.ServeAction
    assert args.config == pathlib.Path("config.yaml")
    assert args.resources == "pods,services"
    assert args.port == 9000
    assert args.in_cluster
    assert args.namespaces is None
    assert args.host is None


def test_apply_flags() -> None:
    """Test command line flags override the configuration file."""
    config = parse_config("resources:\n- pods\nserver:\n  port: 9090\n")
    config = serve.apply_flags(
        config,
        namespaces="a, b,",
        metric_denylist="kube_pod_labels",
        host="127.0.0.1",
    )
    assert config.resources == ["pods"]
    assert config.namespaces == ["a", "b"]
    assert config.metric_filter.deny == ["kube_pod_labels"]
    assert config.server.host == "127.0.0.1"
    assert config.server.port == 9090


async def test_build_collectors_defaults_to_all_kinds() -> None:
    """Test all known kinds are enabled when none are configured."""
    task_service = TaskServiceImpl()
    collectors = serve.build_collectors(ExporterConfig(), _factory, task_service)
    assert [collector.name for collector in collectors] == sorted(DEFAULT_REGISTRY)
    await task_service.shutdown()


def test_main_error(capsys: pytest.CaptureFixture[str]) -> None:
    """Test errors of the action are reported with a failing exit code."""

    async def fail(self: serve.ServeAction, **kwargs: object) -> None:
        raise ConfigException("Invalid configuration: boom")

    with patch("sys.argv", ["kube-state", "serve"]), patch.object(
        serve.ServeAction, "run", fail
    ):
        with pytest.raises(SystemExit) as exit_info:
            main()
    assert exit_info.value.code == 1
    assert "kube-state error:  Invalid configuration: boom" in capsys.readouterr().err
