"""Metric families of DaemonSet objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import DaemonSet

from .utils import Wrapper, created_family, labels_families, wrap_func

DEFAULT_LABELS = ("namespace", "daemonset")

_wrap: Wrapper = functools.partial(
    wrap_func, DaemonSet, DEFAULT_LABELS, lambda ds: (ds.namespace or "", ds.name)
)

# Field of the DaemonSet, family name suffix and help text of each status gauge.
_STATUS_FIELDS = (
    (
        "current_number_scheduled",
        "status_current_number_scheduled",
        "The number of nodes running at least one daemon pod and are supposed to.",
    ),
    (
        "desired_number_scheduled",
        "status_desired_number_scheduled",
        "The number of nodes that should be running the daemon pod.",
    ),
    (
        "number_available",
        "status_number_available",
        "The number of nodes that should be running the daemon pod and have one "
        "or more of the daemon pod running and available",
    ),
    (
        "number_misscheduled",
        "status_number_misscheduled",
        "The number of nodes running a daemon pod but are not supposed to.",
    ),
    (
        "number_ready",
        "status_number_ready",
        "The number of nodes that should be running the daemon pod and have one "
        "or more of the daemon pod running and ready.",
    ),
    (
        "number_unavailable",
        "status_number_unavailable",
        "The number of nodes that should be running the daemon pod and have none "
        "of the daemon pod running and available",
    ),
    (
        "updated_number_scheduled",
        "updated_number_scheduled",
        "The total number of nodes that are running updated daemon pod",
    ),
    (
        "observed_generation",
        "status_observed_generation",
        "The most recent generation observed by the daemon set controller.",
    ),
)


def _status_gauge(name: str, help_text: str, attr: str) -> FamilyGenerator:
    return FamilyGenerator(
        name,
        help_text,
        MetricType.GAUGE,
        _wrap(lambda ds: [Metric(value=getattr(ds, attr))]),
    )


def daemon_set_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for DaemonSets."""
    prefix = "kube_daemonset"
    return [
        created_family(prefix, _wrap),
        *(
            _status_gauge(f"{prefix}_{suffix}", help_text, attr)
            for attr, suffix, help_text in _STATUS_FIELDS
        ),
        FamilyGenerator(
            f"{prefix}_metadata_generation",
            "Sequence number representing a specific generation of the desired state.",
            MetricType.GAUGE,
            _wrap(lambda ds: [Metric(value=ds.metadata.generation)]),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
