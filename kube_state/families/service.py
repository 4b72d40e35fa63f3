"""Metric families of Service objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import Service

from .utils import Wrapper, created_family, labels_families, wrap_func

DEFAULT_LABELS = ("namespace", "service")

_wrap: Wrapper = functools.partial(
    wrap_func,
    Service,
    DEFAULT_LABELS,
    lambda service: (service.namespace or "", service.name),
)


def _info(service: Service) -> list[Metric]:
    return [
        Metric(
            label_keys=["cluster_ip", "external_name", "load_balancer_ip"],
            label_values=[
                service.cluster_ip,
                service.external_name,
                service.load_balancer_ip,
            ],
            value=1,
        )
    ]


def _spec_type(service: Service) -> list[Metric]:
    return [Metric(label_keys=["type"], label_values=[service.type], value=1)]


def _external_ips(service: Service) -> list[Metric]:
    return [
        Metric(label_keys=["external_ip"], label_values=[ip], value=1)
        for ip in service.external_ips
    ]


def _load_balancer_ingress(service: Service) -> list[Metric]:
    return [
        Metric(label_keys=["ip", "hostname"], label_values=[ip, hostname], value=1)
        for ip, hostname in service.load_balancer_ingress
    ]


def service_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for Services."""
    prefix = "kube_service"
    return [
        FamilyGenerator(
            f"{prefix}_info",
            "Information about service.",
            MetricType.INFO,
            _wrap(_info),
        ),
        created_family(prefix, _wrap),
        FamilyGenerator(
            f"{prefix}_spec_type",
            "Type about service.",
            MetricType.GAUGE,
            _wrap(_spec_type),
        ),
        FamilyGenerator(
            f"{prefix}_spec_external_ip",
            "Service external ips. One series for each ip",
            MetricType.GAUGE,
            _wrap(_external_ips),
        ),
        FamilyGenerator(
            f"{prefix}_status_load_balancer_ingress",
            "Service load balancer ingress status",
            MetricType.GAUGE,
            _wrap(_load_balancer_ingress),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
