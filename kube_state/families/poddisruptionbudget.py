"""Metric families of PodDisruptionBudget objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import PodDisruptionBudget

from .utils import Wrapper, created_family, labels_families, wrap_func

DEFAULT_LABELS = ("namespace", "poddisruptionbudget")


def _identity(pdb: PodDisruptionBudget) -> tuple[str, str]:
    return (pdb.namespace or "", pdb.name)


_wrap: Wrapper = functools.partial(
    wrap_func, PodDisruptionBudget, DEFAULT_LABELS, _identity
)


def _status_gauge(name: str, help_text: str, attr: str) -> FamilyGenerator:
    return FamilyGenerator(
        name,
        help_text,
        MetricType.GAUGE,
        _wrap(lambda pdb: [Metric(value=getattr(pdb, attr))]),
    )


def pod_disruption_budget_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for PodDisruptionBudgets."""
    prefix = "kube_poddisruptionbudget"
    return [
        created_family(prefix, _wrap),
        _status_gauge(
            f"{prefix}_status_current_healthy",
            "Current number of healthy pods",
            "current_healthy",
        ),
        _status_gauge(
            f"{prefix}_status_desired_healthy",
            "Minimum desired number of healthy pods",
            "desired_healthy",
        ),
        _status_gauge(
            f"{prefix}_status_pod_disruptions_allowed",
            "Number of pod disruptions that are currently allowed",
            "disruptions_allowed",
        ),
        _status_gauge(
            f"{prefix}_status_expected_pods",
            "Total number of pods counted by this disruption budget",
            "expected_pods",
        ),
        _status_gauge(
            f"{prefix}_status_observed_generation",
            "Most recent generation observed when updating this PDB status",
            "observed_generation",
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
