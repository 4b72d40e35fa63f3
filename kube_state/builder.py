"""Builder assembling the collectors of the enabled resource kinds.

For each enabled kind the builder filters the metric families through the
allow/deny list, composes them into one render function, creates the metrics
store and starts one reflector per namespace writing into that store.
"""

from collections.abc import Iterable, Mapping, Sequence
import logging

from .collector import Collector
from .config import ReflectorConfig
from .exceptions import ConfigException
from .listwatch import NAMESPACE_ALL
from .metric import (
    AllowDenyLister,
    compose_metric_gen_funcs,
    extract_headers,
    filter_metric_families,
)
from .reflector import Reflector
from .registry import DEFAULT_REGISTRY, KindSpec, ListWatchFactory, Registry
from .store import MetricsStore
from .task import TaskService, get_task_service
from .telemetry import Telemetry

__all__ = ["Builder"]

_LOGGER = logging.getLogger(__name__)


class Builder:
    """Builds the collectors of the enabled resource kinds.

    Configure the builder with the `with_*` methods, then call `build` from
    within a running event loop since it starts the reflectors.
    """

    def __init__(
        self,
        registry: Registry = DEFAULT_REGISTRY,
        task_service: TaskService | None = None,
    ) -> None:
        self._registry = registry
        self._task_service = task_service
        self._enabled_resources: list[str] = []
        self._namespaces: list[str] = [NAMESPACE_ALL]
        self._allow_deny_list: AllowDenyLister | None = None
        self._list_watch_factory: ListWatchFactory | None = None
        self._field_selector: str | None = None
        self._label_allow_list: Mapping[str, Sequence[str]] = {}
        self._annotation_allow_list: Mapping[str, Sequence[str]] = {}
        self._reflector_config = ReflectorConfig()
        self._telemetry: Telemetry | None = None

    def with_enabled_resources(self, resources: Iterable[str]) -> "Builder":
        """Set the resource kinds to build collectors for."""
        self._enabled_resources = sorted(set(resources))
        return self

    def with_namespaces(self, namespaces: Iterable[str]) -> "Builder":
        """Set the namespaces to watch, all namespaces when empty."""
        self._namespaces = sorted(set(namespaces)) or [NAMESPACE_ALL]
        return self

    def with_allow_deny_list(self, allow_deny_list: AllowDenyLister) -> "Builder":
        """Set the policy deciding which metric families are exposed."""
        self._allow_deny_list = allow_deny_list
        return self

    def with_list_watch_factory(self, factory: ListWatchFactory) -> "Builder":
        """Set the factory creating the list/watch source of each reflector."""
        self._list_watch_factory = factory
        return self

    def with_field_selector(self, field_selector: str | None) -> "Builder":
        """Set a field selector applied to every list and watch call."""
        self._field_selector = field_selector
        return self

    def with_label_allow_list(
        self, allow_list: Mapping[str, Sequence[str]]
    ) -> "Builder":
        """Set the kubernetes labels exposed per resource kind."""
        self._label_allow_list = allow_list
        return self

    def with_annotation_allow_list(
        self, allow_list: Mapping[str, Sequence[str]]
    ) -> "Builder":
        """Set the kubernetes annotations exposed per resource kind."""
        self._annotation_allow_list = allow_list
        return self

    def with_reflector_config(self, config: ReflectorConfig) -> "Builder":
        """Set the timing of the list and watch calls."""
        self._reflector_config = config
        return self

    def with_telemetry(self, telemetry: Telemetry) -> "Builder":
        """Set the registry counting list and watch results."""
        self._telemetry = telemetry
        return self

    def build(self) -> list[Collector]:
        """Build the collectors and start their reflectors."""
        if self._allow_deny_list is None:
            raise ConfigException("An allow/deny list of metrics is required")
        if self._list_watch_factory is None:
            raise ConfigException("A list/watch factory is required")

        collectors: list[Collector] = []
        for resource in self._enabled_resources:
            if (spec := self._registry.get(resource)) is None:
                _LOGGER.warning("Skipping unknown resource %s", resource)
                continue
            collectors.append(
                self._build_collector(
                    spec, self._allow_deny_list, self._list_watch_factory
                )
            )

        _LOGGER.info(
            "Active resources: %s",
            ",".join(collector.name for collector in collectors),
        )
        return collectors

    def _build_collector(
        self,
        spec: KindSpec,
        allow_deny_list: AllowDenyLister,
        list_watch_factory: ListWatchFactory,
    ) -> Collector:
        families = filter_metric_families(
            allow_deny_list,
            spec.metric_families(
                self._annotation_allow_list.get(spec.name),
                self._label_allow_list.get(spec.name),
            ),
        )
        store = MetricsStore(
            extract_headers(families),
            compose_metric_gen_funcs(families),
        )
        self._reflector_per_namespace(spec, store, list_watch_factory)
        return Collector(spec.name, store)

    def _reflector_per_namespace(
        self,
        spec: KindSpec,
        store: MetricsStore,
        list_watch_factory: ListWatchFactory,
    ) -> None:
        """Start one reflector per namespace writing into the store."""
        task_service = self._task_service or get_task_service()
        namespaces = self._namespaces if spec.namespaced else [NAMESPACE_ALL]
        for namespace in namespaces:
            reflector = Reflector(
                spec.name,
                list_watch_factory(spec, namespace, self._field_selector),
                store,
                spec.parse,
                namespace=namespace or None,
                config=self._reflector_config,
                telemetry=self._telemetry,
            )
            task_service.create_background_task(
                reflector.run(), name=f"reflector {reflector.name}"
            )
