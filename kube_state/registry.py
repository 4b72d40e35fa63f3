"""Registry of the resource kinds that can be exposed as metrics.

Each kind is described by a `KindSpec`: how to parse its objects, which metric
families it exposes and how to list and watch it with the kubernetes client.
The builder receives a registry as a value, tests can pass their own.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
import functools
from typing import Any

from kubernetes import client

from .config import ReflectorConfig
from .families import (
    certificate_signing_request_metric_families,
    config_map_metric_families,
    daemon_set_metric_families,
    deployment_metric_families,
    namespace_metric_families,
    pod_disruption_budget_metric_families,
    pod_metric_families,
    service_metric_families,
)
from .listwatch import NAMESPACE_ALL, KubeListWatch, ListerWatcher, ListFunc
from .metric import FamilyGenerator
from .objects import (
    BaseObject,
    CertificateSigningRequest,
    ConfigMap,
    DaemonSet,
    Deployment,
    Namespace,
    Pod,
    PodDisruptionBudget,
    Service,
)

__all__ = [
    "KindSpec",
    "Registry",
    "DEFAULT_REGISTRY",
    "ListWatchFactory",
    "kube_list_watch_factory",
]

MetricFamiliesFunc = Callable[
    [Sequence[str] | None, Sequence[str] | None], list[FamilyGenerator]
]
"""Returns the families of a kind given the annotation and label allow lists."""

ListFuncFactory = Callable[[client.ApiClient, str], ListFunc]
"""Returns the list function of a kind for an API client and namespace."""


@dataclass(frozen=True)
class KindSpec:
    """Description of a resource kind exposed as metrics."""

    name: str
    """Plural resource name, e.g. `pods`."""

    parse: Callable[[dict[str, Any]], BaseObject]
    """Parses a raw object of this kind."""

    metric_families: MetricFamiliesFunc
    """Returns the ordered metric families of this kind."""

    list_func: ListFuncFactory
    """Returns the kubernetes client list function for a namespace."""

    namespaced: bool = True
    """False for cluster scoped kinds, which are watched once."""


Registry = Mapping[str, KindSpec]

ListWatchFactory = Callable[[KindSpec, str, str | None], ListerWatcher]
"""Creates the list/watch source of a kind for a namespace and field selector."""


def _namespaced(
    api_cls: type[Any], namespaced_method: str, all_namespaces_method: str
) -> ListFuncFactory:
    def list_func(api_client: client.ApiClient, namespace: str) -> ListFunc:
        api = api_cls(api_client)
        if namespace == NAMESPACE_ALL:
            return getattr(api, all_namespaces_method)
        return functools.partial(getattr(api, namespaced_method), namespace)

    return list_func


def _cluster(api_cls: type[Any], method: str) -> ListFuncFactory:
    def list_func(api_client: client.ApiClient, namespace: str) -> ListFunc:
        return getattr(api_cls(api_client), method)

    return list_func


DEFAULT_REGISTRY: Registry = {
    spec.name: spec
    for spec in (
        KindSpec(
            "certificatesigningrequests",
            CertificateSigningRequest.parse_doc,
            certificate_signing_request_metric_families,
            _cluster(client.CertificatesV1Api, "list_certificate_signing_request"),
            namespaced=False,
        ),
        KindSpec(
            "configmaps",
            ConfigMap.parse_doc,
            config_map_metric_families,
            _namespaced(
                client.CoreV1Api,
                "list_namespaced_config_map",
                "list_config_map_for_all_namespaces",
            ),
        ),
        KindSpec(
            "daemonsets",
            DaemonSet.parse_doc,
            daemon_set_metric_families,
            _namespaced(
                client.AppsV1Api,
                "list_namespaced_daemon_set",
                "list_daemon_set_for_all_namespaces",
            ),
        ),
        KindSpec(
            "deployments",
            Deployment.parse_doc,
            deployment_metric_families,
            _namespaced(
                client.AppsV1Api,
                "list_namespaced_deployment",
                "list_deployment_for_all_namespaces",
            ),
        ),
        KindSpec(
            "namespaces",
            Namespace.parse_doc,
            namespace_metric_families,
            _cluster(client.CoreV1Api, "list_namespace"),
            namespaced=False,
        ),
        KindSpec(
            "poddisruptionbudgets",
            PodDisruptionBudget.parse_doc,
            pod_disruption_budget_metric_families,
            _namespaced(
                client.PolicyV1Api,
                "list_namespaced_pod_disruption_budget",
                "list_pod_disruption_budget_for_all_namespaces",
            ),
        ),
        KindSpec(
            "pods",
            Pod.parse_doc,
            pod_metric_families,
            _namespaced(
                client.CoreV1Api,
                "list_namespaced_pod",
                "list_pod_for_all_namespaces",
            ),
        ),
        KindSpec(
            "services",
            Service.parse_doc,
            service_metric_families,
            _namespaced(
                client.CoreV1Api,
                "list_namespaced_service",
                "list_service_for_all_namespaces",
            ),
        ),
    )
}


def kube_list_watch_factory(
    api_client: client.ApiClient,
    config: ReflectorConfig | None = None,
) -> ListWatchFactory:
    """Return a factory of list/watch sources backed by the API server."""
    config = config or ReflectorConfig()

    def create(
        spec: KindSpec, namespace: str, field_selector: str | None
    ) -> ListerWatcher:
        return KubeListWatch(
            spec.name,
            spec.list_func(api_client, namespace),
            namespace=namespace,
            field_selector=field_selector,
            request_timeout=config.request_timeout_seconds,
            watch_timeout=config.watch_timeout_seconds,
        )

    return create
