"""Metric families of ConfigMap objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import ConfigMap

from .utils import Wrapper, created_family, labels_families, wrap_func

DEFAULT_LABELS = ("namespace", "configmap")

_wrap: Wrapper = functools.partial(
    wrap_func,
    ConfigMap,
    DEFAULT_LABELS,
    lambda configmap: (configmap.namespace or "", configmap.name),
)


def _resource_version(configmap: ConfigMap) -> list[Metric]:
    try:
        return [Metric(value=float(configmap.resource_version))]
    except ValueError:
        # Resource versions are opaque, only numeric ones are exposed.
        return []


def config_map_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for ConfigMaps."""
    prefix = "kube_configmap"
    return [
        FamilyGenerator(
            f"{prefix}_info",
            "Information about configmap.",
            MetricType.INFO,
            _wrap(lambda configmap: [Metric(value=1)]),
        ),
        created_family(prefix, _wrap),
        FamilyGenerator(
            f"{prefix}_metadata_resource_version",
            "Resource version representing a specific version of the configmap.",
            MetricType.GAUGE,
            _wrap(_resource_version),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
