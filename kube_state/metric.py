"""Metric families and their rendering as Prometheus exposition text.

A `FamilyGenerator` describes one metric family: its name, help text, type and
a function mapping a single object to the metrics of that family. The
generators of one resource kind are composed into a single function returning
one `Family` per generator, in a fixed order, so that a store can line up the
rendered text with the family headers it was built with.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Any, Protocol

from prometheus_client.utils import floatToGoString

from .exceptions import MetricRenderError

__all__ = [
    "MetricType",
    "Metric",
    "Family",
    "FamilyGenerator",
    "RenderedFamily",
    "AllowDenyLister",
    "compose_metric_gen_funcs",
    "extract_headers",
    "filter_metric_families",
]

_LOGGER = logging.getLogger(__name__)


class MetricType(StrEnum):
    """Type of a metric family."""

    GAUGE = "gauge"
    COUNTER = "counter"
    INFO = "info"
    STATESET = "stateset"

    @property
    def exposition_type(self) -> str:
        """Type written in the `# TYPE` line of the text format.

        The text format has no info or stateset types, both are exposed as
        gauges.
        """
        if self in (MetricType.INFO, MetricType.STATESET):
            return MetricType.GAUGE.value
        return self.value


def escape_label_value(value: str) -> str:
    """Escape a label value for the text exposition format."""
    return value.replace("\\", r"\\").replace("\n", r"\n").replace('"', r"\"")


def escape_help(value: str) -> str:
    """Escape help text for the text exposition format."""
    return value.replace("\\", r"\\").replace("\n", r"\n")


@dataclass(frozen=True)
class Metric:
    """A single metric instance: label pairs and a value."""

    label_keys: Sequence[str] = ()
    label_values: Sequence[str] = ()
    value: float = 0.0

    def to_text(self, family_name: str) -> str:
        """Render this metric as one line of exposition text."""
        if len(self.label_keys) != len(self.label_values):
            raise MetricRenderError(
                f"Metric {family_name} has {len(self.label_keys)} label keys "
                f"but {len(self.label_values)} label values"
            )
        if len(set(self.label_keys)) != len(self.label_keys):
            raise MetricRenderError(
                f"Metric {family_name} has duplicate label keys: {list(self.label_keys)}"
            )
        if self.label_keys:
            labels = ",".join(
                f'{key}="{escape_label_value(value)}"'
                for key, value in zip(self.label_keys, self.label_values)
            )
            return f"{family_name}{{{labels}}} {floatToGoString(self.value)}\n"
        return f"{family_name} {floatToGoString(self.value)}\n"


@dataclass(frozen=True)
class Family:
    """The metrics of one family rendered for one object."""

    metrics: Sequence[Metric] = ()

    def to_text(self, family_name: str) -> str:
        """Render all metrics of the family, without the header."""
        return "".join(metric.to_text(family_name) for metric in self.metrics)


class GenerateFunc(Protocol):
    """Function returning the metrics of one family for an object."""

    def __call__(self, obj: Any) -> Family: ...


@dataclass(frozen=True)
class FamilyGenerator:
    """Describes a metric family and how to generate it from an object."""

    name: str
    """The metric family name."""

    help: str
    """Help text written in the `# HELP` line."""

    type: MetricType
    """The metric type."""

    generate: GenerateFunc = field(compare=False)
    """Pure function producing the family for one object."""

    def header(self) -> str:
        """Return the `# HELP` and `# TYPE` lines for the family."""
        return (
            f"# HELP {self.name} {escape_help(self.help)}\n"
            f"# TYPE {self.name} {self.type.exposition_type}\n"
        )


@dataclass(frozen=True)
class RenderedFamily:
    """Exposition text of one family for one object."""

    name: str
    header: str
    text: str

    def __str__(self) -> str:
        return self.header + self.text


class AllowDenyLister(Protocol):
    """Policy deciding which metric families are exposed."""

    def is_included(self, name: str) -> bool: ...

    def is_excluded(self, name: str) -> bool: ...


def filter_metric_families(
    policy: AllowDenyLister, generators: Sequence[FamilyGenerator]
) -> list[FamilyGenerator]:
    """Return the generators whose family name the policy includes."""
    return [gen for gen in generators if policy.is_included(gen.name)]


def extract_headers(generators: Sequence[FamilyGenerator]) -> list[str]:
    """Return the header lines of each generator, in order."""
    return [gen.header() for gen in generators]


def compose_metric_gen_funcs(
    generators: Sequence[FamilyGenerator],
) -> Callable[[Any], list[RenderedFamily]]:
    """Compose the generators into a single function rendering an object.

    The returned function renders one `RenderedFamily` per generator in the
    order of `generators`. A generator failing for an object produces an
    empty family for that object and a warning, the other families are not
    affected.
    """
    names = [gen.name for gen in generators]
    if len(set(names)) != len(names):
        duplicates = sorted({name for name in names if names.count(name) > 1})
        raise ValueError(f"Duplicate metric family names: {duplicates}")
    funcs = tuple(generators)
    headers = {gen.name: gen.header() for gen in funcs}

    def generate(obj: Any) -> list[RenderedFamily]:
        rendered = []
        for gen in funcs:
            try:
                text = gen.generate(obj).to_text(gen.name)
            except Exception as err:
                _LOGGER.warning(
                    "Failed to generate metric family %s for %s: %s",
                    gen.name,
                    getattr(obj, "identity", obj),
                    err,
                )
                text = ""
            rendered.append(
                RenderedFamily(name=gen.name, header=headers[gen.name], text=text)
            )
        return rendered

    return generate
