"""Metric families of Namespace objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import Namespace

from .utils import (
    Wrapper,
    bool_float,
    condition_metrics,
    created_family,
    labels_families,
    wrap_func,
)

DEFAULT_LABELS = ("namespace",)

NAMESPACE_PHASES = ("Active", "Terminating")

_wrap: Wrapper = functools.partial(
    wrap_func, Namespace, DEFAULT_LABELS, lambda namespace: (namespace.name,)
)


def _phase(namespace: Namespace) -> list[Metric]:
    if not namespace.phase:
        return []
    return [
        Metric(
            label_keys=["phase"],
            label_values=[phase],
            value=bool_float(phase == namespace.phase),
        )
        for phase in NAMESPACE_PHASES
    ]


def _conditions(namespace: Namespace) -> list[Metric]:
    metrics: list[Metric] = []
    for condition in namespace.conditions:
        metrics.extend(condition_metrics(condition))
    return metrics


def namespace_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for Namespaces."""
    prefix = "kube_namespace"
    return [
        created_family(prefix, _wrap),
        FamilyGenerator(
            f"{prefix}_status_phase",
            "kubernetes namespace status phase.",
            MetricType.STATESET,
            _wrap(_phase),
        ),
        FamilyGenerator(
            f"{prefix}_status_condition",
            "The condition of a namespace.",
            MetricType.STATESET,
            _wrap(_conditions),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
