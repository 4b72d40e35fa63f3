"""kube-state serve action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
    BooleanOptionalAction,
)
import asyncio
import logging
import pathlib
import signal
from typing import cast

from kube_state.allow_deny import AllowDenyList
from kube_state.builder import Builder
from kube_state.collector import Collector
from kube_state.config import ExporterConfig, read_config
from kube_state.kube_client import create_api_client
from kube_state.registry import DEFAULT_REGISTRY, ListWatchFactory, kube_list_watch_factory
from kube_state.server import MetricsServer, create_app
from kube_state.task import TaskService, task_service_context
from kube_state.telemetry import Telemetry

_LOGGER = logging.getLogger(__name__)


def _split(value: str | None) -> list[str] | None:
    """Split a comma separated flag value, None when the flag is not set."""
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def apply_flags(
    config: ExporterConfig,
    resources: str | None = None,
    namespaces: str | None = None,
    metric_allowlist: str | None = None,
    metric_denylist: str | None = None,
    field_selector: str | None = None,
    host: str | None = None,
    port: int | None = None,
) -> ExporterConfig:
    """Override the configuration with the command line flags that are set."""
    if (values := _split(resources)) is not None:
        config.resources = values
    if (values := _split(namespaces)) is not None:
        config.namespaces = values
    if (values := _split(metric_allowlist)) is not None:
        config.metric_filter.allow = values
    if (values := _split(metric_denylist)) is not None:
        config.metric_filter.deny = values
    if field_selector is not None:
        config.field_selector = field_selector or None
    if host is not None:
        config.server.host = host
    if port is not None:
        config.server.port = port
    return config


def build_collectors(
    config: ExporterConfig,
    list_watch_factory: ListWatchFactory,
    task_service: TaskService,
    telemetry: Telemetry | None = None,
) -> list[Collector]:
    """Build the collectors described by the configuration."""
    builder = (
        Builder(DEFAULT_REGISTRY, task_service)
        .with_enabled_resources(config.resources or DEFAULT_REGISTRY.keys())
        .with_namespaces(config.namespaces)
        .with_allow_deny_list(AllowDenyList.from_config(config.metric_filter))
        .with_list_watch_factory(list_watch_factory)
        .with_field_selector(config.field_selector)
        .with_label_allow_list(config.labels_allow_list)
        .with_annotation_allow_list(config.annotations_allow_list)
        .with_reflector_config(config.reflector)
    )
    if telemetry is not None:
        builder = builder.with_telemetry(telemetry)
    return builder.build()


async def _wait_for_signal() -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)
    try:
        await stop.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)


class ServeAction:
    """kube-state serve action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "serve",
                help="Watch the cluster and serve object state as metrics",
                description="""Watches the enabled resource kinds in the cluster
                    and serves their state in the Prometheus text format.""",
            ),
        )
        args.add_argument(
            "--config",
            type=pathlib.Path,
            help="Path to a YAML configuration file",
        )
        args.add_argument(
            "--resources",
            type=str,
            help="Comma separated resource kinds to expose, e.g. pods,services",
        )
        args.add_argument(
            "--namespaces",
            type=str,
            help="Comma separated namespaces to watch, all namespaces by default",
        )
        args.add_argument(
            "--metric-allowlist",
            type=str,
            help="Comma separated patterns of metric families to expose",
        )
        args.add_argument(
            "--metric-denylist",
            type=str,
            help="Comma separated patterns of metric families never to expose",
        )
        args.add_argument(
            "--field-selector",
            type=str,
            help="Field selector applied to every list and watch call",
        )
        args.add_argument(
            "--in-cluster",
            type=bool,
            action=BooleanOptionalAction,
            default=False,
            help="Use the service account of the pod to reach the API server",
        )
        args.add_argument(
            "--kubeconfig",
            type=str,
            help="Path to a kubeconfig file, when not running in the cluster",
        )
        args.add_argument(
            "--apiserver",
            type=str,
            help="URL of the API server, overriding the one in the kubeconfig",
        )
        args.add_argument("--host", type=str, help="Address to listen on")
        args.add_argument("--port", type=int, help="Port to listen on")
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        config: pathlib.Path | None,
        resources: str | None,
        namespaces: str | None,
        metric_allowlist: str | None,
        metric_denylist: str | None,
        field_selector: str | None,
        in_cluster: bool,
        kubeconfig: str | None,
        apiserver: str | None,
        host: str | None,
        port: int | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        exporter_config = await read_config(config) if config else ExporterConfig()
        exporter_config = apply_flags(
            exporter_config,
            resources=resources,
            namespaces=namespaces,
            metric_allowlist=metric_allowlist,
            metric_denylist=metric_denylist,
            field_selector=field_selector,
            host=host,
            port=port,
        )

        api_client = await create_api_client(
            in_cluster=in_cluster, apiserver=apiserver, kubeconfig=kubeconfig
        )
        telemetry = Telemetry()
        try:
            with task_service_context() as task_service:
                collectors = build_collectors(
                    exporter_config,
                    kube_list_watch_factory(api_client, exporter_config.reflector),
                    task_service,
                    telemetry,
                )
                server = MetricsServer(
                    create_app(collectors, telemetry),
                    exporter_config.server.host,
                    exporter_config.server.port,
                )
                await server.start()
                try:
                    await _wait_for_signal()
                    _LOGGER.info("Shutting down")
                finally:
                    await server.stop()
                    await task_service.shutdown()
        finally:
            api_client.close()
