"""Metric families of each supported resource kind.

Each module returns the ordered list of `FamilyGenerator` for one kind. The
label and annotation allow lists select which kubernetes labels and
annotations are converted to Prometheus labels.
"""

from .certificatesigningrequest import certificate_signing_request_metric_families
from .configmap import config_map_metric_families
from .daemonset import daemon_set_metric_families
from .deployment import deployment_metric_families
from .namespace import namespace_metric_families
from .pod import pod_metric_families
from .poddisruptionbudget import pod_disruption_budget_metric_families
from .service import service_metric_families

__all__ = [
    "certificate_signing_request_metric_families",
    "config_map_metric_families",
    "daemon_set_metric_families",
    "deployment_metric_families",
    "namespace_metric_families",
    "pod_metric_families",
    "pod_disruption_budget_metric_families",
    "service_metric_families",
]
