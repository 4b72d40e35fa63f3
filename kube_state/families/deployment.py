"""Metric families of Deployment objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import Deployment

from .utils import (
    Wrapper,
    bool_float,
    condition_metrics,
    created_family,
    labels_families,
    wrap_func,
)

DEFAULT_LABELS = ("namespace", "deployment")

_wrap: Wrapper = functools.partial(
    wrap_func,
    Deployment,
    DEFAULT_LABELS,
    lambda deployment: (deployment.namespace or "", deployment.name),
)


def _spec_replicas(deployment: Deployment) -> list[Metric]:
    if deployment.spec_replicas is None:
        return []
    return [Metric(value=deployment.spec_replicas)]


def _conditions(deployment: Deployment) -> list[Metric]:
    metrics: list[Metric] = []
    for condition in deployment.conditions:
        metrics.extend(condition_metrics(condition))
    return metrics


def deployment_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for Deployments."""
    prefix = "kube_deployment"
    return [
        created_family(prefix, _wrap),
        FamilyGenerator(
            f"{prefix}_spec_replicas",
            "Number of desired pods for a deployment.",
            MetricType.GAUGE,
            _wrap(_spec_replicas),
        ),
        FamilyGenerator(
            f"{prefix}_spec_paused",
            "Whether the deployment is paused and will not be processed by the "
            "deployment controller.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=bool_float(deployment.paused))]),
        ),
        FamilyGenerator(
            f"{prefix}_status_replicas",
            "The number of replicas per deployment.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.replicas)]),
        ),
        FamilyGenerator(
            f"{prefix}_status_replicas_ready",
            "The number of ready replicas per deployment.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.ready_replicas)]),
        ),
        FamilyGenerator(
            f"{prefix}_status_replicas_available",
            "The number of available replicas per deployment.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.available_replicas)]),
        ),
        FamilyGenerator(
            f"{prefix}_status_replicas_unavailable",
            "The number of unavailable replicas per deployment.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.unavailable_replicas)]),
        ),
        FamilyGenerator(
            f"{prefix}_status_replicas_updated",
            "The number of updated replicas per deployment.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.updated_replicas)]),
        ),
        FamilyGenerator(
            f"{prefix}_status_observed_generation",
            "The generation observed by the deployment controller.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.observed_generation)]),
        ),
        FamilyGenerator(
            f"{prefix}_status_condition",
            "The current status conditions of a deployment.",
            MetricType.STATESET,
            _wrap(_conditions),
        ),
        FamilyGenerator(
            f"{prefix}_metadata_generation",
            "Sequence number representing a specific generation of the desired state.",
            MetricType.GAUGE,
            _wrap(lambda deployment: [Metric(value=deployment.metadata.generation)]),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
