"""Metric families of Pod objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import Pod

from .utils import (
    Wrapper,
    bool_float,
    condition_metrics,
    created_family,
    labels_families,
    wrap_func,
)

DEFAULT_LABELS = ("namespace", "pod")

POD_PHASES = ("Pending", "Succeeded", "Failed", "Unknown", "Running")
CONTAINER_STATES = ("waiting", "running", "terminated")

_wrap: Wrapper = functools.partial(
    wrap_func, Pod, DEFAULT_LABELS, lambda pod: (pod.namespace or "", pod.name)
)


def _info(pod: Pod) -> list[Metric]:
    created_by_kind = created_by_name = "<none>"
    if (owner := pod.created_by) is not None:
        created_by_kind = owner.kind
        created_by_name = owner.name
    return [
        Metric(
            label_keys=[
                "host_ip",
                "pod_ip",
                "uid",
                "node",
                "created_by_kind",
                "created_by_name",
                "priority_class",
            ],
            label_values=[
                pod.host_ip,
                pod.pod_ip,
                pod.metadata.uid,
                pod.node_name,
                created_by_kind,
                created_by_name,
                pod.priority_class,
            ],
            value=1,
        )
    ]


def _start_time(pod: Pod) -> list[Metric]:
    if pod.start_time is None:
        return []
    return [Metric(value=pod.start_time)]


def _phase(pod: Pod) -> list[Metric]:
    if not pod.phase:
        return []
    return [
        Metric(
            label_keys=["phase"],
            label_values=[phase],
            value=bool_float(phase == pod.phase),
        )
        for phase in POD_PHASES
    ]


def _conditions(pod: Pod) -> list[Metric]:
    metrics: list[Metric] = []
    for condition in pod.conditions:
        metrics.extend(condition_metrics(condition))
    return metrics


def _deletion_timestamp(pod: Pod) -> list[Metric]:
    if pod.metadata.deletion_timestamp is None:
        return []
    return [Metric(value=pod.metadata.deletion_timestamp)]


def _container_info(pod: Pod) -> list[Metric]:
    return [
        Metric(
            label_keys=["container", "image", "image_id", "container_id"],
            label_values=[
                status.name,
                status.image,
                status.image_id,
                status.container_id,
            ],
            value=1,
        )
        for status in pod.container_statuses
    ]


def _container_ready(pod: Pod) -> list[Metric]:
    return [
        Metric(
            label_keys=["container"],
            label_values=[status.name],
            value=bool_float(status.ready),
        )
        for status in pod.container_statuses
    ]


def _container_restarts(pod: Pod) -> list[Metric]:
    return [
        Metric(
            label_keys=["container"],
            label_values=[status.name],
            value=status.restart_count,
        )
        for status in pod.container_statuses
    ]


def _container_state(pod: Pod) -> list[Metric]:
    return [
        Metric(
            label_keys=["container", "state"],
            label_values=[status.name, state],
            value=bool_float(status.state == state),
        )
        for status in pod.container_statuses
        for state in CONTAINER_STATES
    ]


def _container_waiting_reason(pod: Pod) -> list[Metric]:
    return [
        Metric(
            label_keys=["container", "reason"],
            label_values=[status.name, status.reason],
            value=1,
        )
        for status in pod.container_statuses
        if status.state == "waiting" and status.reason
    ]


def _init_container_ready(pod: Pod) -> list[Metric]:
    return [
        Metric(
            label_keys=["container"],
            label_values=[status.name],
            value=bool_float(status.ready),
        )
        for status in pod.init_container_statuses
    ]


def pod_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for Pods."""
    prefix = "kube_pod"
    return [
        FamilyGenerator(
            f"{prefix}_info",
            "Information about pod.",
            MetricType.INFO,
            _wrap(_info),
        ),
        created_family(prefix, _wrap),
        FamilyGenerator(
            f"{prefix}_start_time",
            "Start time in unix timestamp for a pod.",
            MetricType.GAUGE,
            _wrap(_start_time),
        ),
        FamilyGenerator(
            f"{prefix}_deletion_timestamp",
            "Unix deletion timestamp",
            MetricType.GAUGE,
            _wrap(_deletion_timestamp),
        ),
        FamilyGenerator(
            f"{prefix}_status_phase",
            "The pods current phase.",
            MetricType.STATESET,
            _wrap(_phase),
        ),
        FamilyGenerator(
            f"{prefix}_status_condition",
            "The current status of the conditions of the pod.",
            MetricType.STATESET,
            _wrap(_conditions),
        ),
        FamilyGenerator(
            f"{prefix}_container_info",
            "Information about a container in a pod.",
            MetricType.INFO,
            _wrap(_container_info),
        ),
        FamilyGenerator(
            f"{prefix}_container_status_ready",
            "Describes whether the containers readiness check succeeded.",
            MetricType.GAUGE,
            _wrap(_container_ready),
        ),
        FamilyGenerator(
            f"{prefix}_container_status_restarts_total",
            "The number of container restarts per container.",
            MetricType.COUNTER,
            _wrap(_container_restarts),
        ),
        FamilyGenerator(
            f"{prefix}_container_state",
            "Describes the state the container is currently in.",
            MetricType.STATESET,
            _wrap(_container_state),
        ),
        FamilyGenerator(
            f"{prefix}_container_status_waiting_reason",
            "Describes the reason the container is currently in waiting state.",
            MetricType.GAUGE,
            _wrap(_container_waiting_reason),
        ),
        FamilyGenerator(
            f"{prefix}_init_container_status_ready",
            "Describes whether the init containers readiness check succeeded.",
            MetricType.GAUGE,
            _wrap(_init_container_ready),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
