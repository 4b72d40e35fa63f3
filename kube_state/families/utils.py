"""Helpers shared by the metric families of all resource kinds."""

from collections.abc import Callable, Iterable, Sequence
import re
from typing import Any, TypeVar

from kube_state.metric import Family, FamilyGenerator, Metric, MetricType
from kube_state.objects import BaseObject, Condition

T = TypeVar("T", bound=BaseObject)

ALLOW_ALL = "*"

_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_CONDITION_STATUSES = ("true", "false", "unknown")

Wrapper = Callable[[Callable[[Any], Iterable[Metric]]], Callable[[Any], Family]]
"""Adds the identity labels of a kind to a typed generator function."""


def sanitize_label_name(name: str) -> str:
    """Replace characters not allowed in a Prometheus label name."""
    return _INVALID_LABEL_CHARS.sub("_", name)


def kube_labels_to_prometheus_labels(
    prefix: str, values: dict[str, str], allow_list: Sequence[str] | None
) -> tuple[list[str], list[str]]:
    """Convert kubernetes labels or annotations to Prometheus label pairs.

    Only keys in the allow list are kept, `*` allows all keys. Keys are sorted
    so the output is stable across renders. Keys that sanitize to the same
    label name are merged, their values joined with `,` in key order.
    """
    if not allow_list:
        return [], []
    allow_all = ALLOW_ALL in allow_list
    merged: dict[str, list[str]] = {}
    for key in sorted(values):
        if not allow_all and key not in allow_list:
            continue
        merged.setdefault(f"{prefix}_{sanitize_label_name(key)}", []).append(
            values[key]
        )
    return list(merged), [",".join(label_values) for label_values in merged.values()]


def bool_float(value: bool) -> float:
    return 1.0 if value else 0.0


def condition_metrics(condition: Condition) -> list[Metric]:
    """Return one metric per possible condition status, set for the current one."""
    status = condition.status.lower()
    return [
        Metric(
            label_keys=["condition", "status"],
            label_values=[condition.type, candidate],
            value=bool_float(status == candidate),
        )
        for candidate in _CONDITION_STATUSES
    ]


def wrap_func(
    cls: type[T],
    default_keys: Sequence[str],
    default_values: Callable[[T], Sequence[str]],
    func: Callable[[T], Iterable[Metric]],
) -> Callable[[Any], Family]:
    """Wrap a typed generator function, prefixing the default identity labels.

    The returned function checks the object type and returns a `Family` whose
    metrics all carry the object identity labels before their own.
    """

    def generate(obj: Any) -> Family:
        if not isinstance(obj, cls):
            raise TypeError(
                f"Expected {cls.__name__} but got {obj.__class__.__name__}"
            )
        values = list(default_values(obj))
        return Family(
            metrics=tuple(
                Metric(
                    label_keys=(*default_keys, *metric.label_keys),
                    label_values=(*values, *metric.label_values),
                    value=metric.value,
                )
                for metric in func(obj)
            )
        )

    return generate


def created_family(prefix: str, wrap: Wrapper) -> FamilyGenerator:
    """Family exposing the creation timestamp of an object."""

    def created(obj: BaseObject) -> list[Metric]:
        if obj.metadata.creation_timestamp is None:
            return []
        return [Metric(value=obj.metadata.creation_timestamp)]

    return FamilyGenerator(
        f"{prefix}_created",
        "Unix creation timestamp",
        MetricType.GAUGE,
        wrap(created),
    )


def labels_families(
    prefix: str,
    wrap: Wrapper,
    allow_labels: Sequence[str] | None,
    allow_annotations: Sequence[str] | None,
) -> list[FamilyGenerator]:
    """Families converting kubernetes labels and annotations to Prometheus labels."""

    def annotations(obj: BaseObject) -> list[Metric]:
        keys, values = kube_labels_to_prometheus_labels(
            "annotation", obj.metadata.annotations, allow_annotations
        )
        return [Metric(label_keys=keys, label_values=values, value=1)]

    def labels(obj: BaseObject) -> list[Metric]:
        keys, values = kube_labels_to_prometheus_labels(
            "label", obj.metadata.labels, allow_labels
        )
        return [Metric(label_keys=keys, label_values=values, value=1)]

    return [
        FamilyGenerator(
            f"{prefix}_annotations",
            "Kubernetes annotations converted to Prometheus labels.",
            MetricType.GAUGE,
            wrap(annotations),
        ),
        FamilyGenerator(
            f"{prefix}_labels",
            "Kubernetes labels converted to Prometheus labels.",
            MetricType.GAUGE,
            wrap(labels),
        ),
    ]
