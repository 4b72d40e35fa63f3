"""Tests for metric families and their rendering."""

from typing import Any
import logging

import pytest

from kube_state.allow_deny import AllowDenyList
from kube_state.exceptions import MetricRenderError
from kube_state.metric import (
    Family,
    FamilyGenerator,
    Metric,
    MetricType,
    compose_metric_gen_funcs,
    extract_headers,
    filter_metric_families,
)


def _const(value: float) -> FamilyGenerator:
    return FamilyGenerator(
        "test_const",
        "A constant",
        MetricType.GAUGE,
        lambda obj: Family(metrics=[Metric(value=value)]),
    )


def test_metric_to_text() -> None:
    """Test rendering a metric with and without labels."""
    metric = Metric(
        label_keys=["namespace", "pod"], label_values=["default", "web-0"], value=1
    )
    assert metric.to_text("kube_pod_info") == (
        'kube_pod_info{namespace="default",pod="web-0"} 1.0\n'
    )
    assert Metric(value=3).to_text("kube_total") == "kube_total 3.0\n"


def test_metric_value_formatting() -> None:
    """Test values are formatted the way Prometheus clients format them."""
    assert Metric(value=0).to_text("m") == "m 0.0\n"
    assert Metric(value=1.5e9).to_text("m") == "m 1.5e+09\n"
    assert Metric(value=float("nan")).to_text("m") == "m NaN\n"
    assert Metric(value=float("inf")).to_text("m") == "m +Inf\n"


def test_metric_label_escaping() -> None:
    """Test label values are escaped."""
    metric = Metric(label_keys=["v"], label_values=['a"b\\c\nd'], value=1)
    assert metric.to_text("m") == 'm{v="a\\"b\\\\c\\nd"} 1.0\n'


def test_metric_label_mismatch() -> None:
    """Test a metric with mismatched label keys and values fails to render."""
    metric = Metric(label_keys=["a", "b"], label_values=["1"], value=1)
    with pytest.raises(MetricRenderError, match="2 label keys but 1 label values"):
        metric.to_text("m")


def test_family_to_text() -> None:
    """Test a family renders its metrics in order and nothing when empty."""
    family = Family(
        metrics=[
            Metric(label_keys=["k"], label_values=["a"], value=1),
            Metric(label_keys=["k"], label_values=["b"], value=0),
        ]
    )
    assert family.to_text("m") == 'm{k="a"} 1.0\nm{k="b"} 0.0\n'
    assert Family().to_text("m") == ""


@pytest.mark.parametrize(
    ("metric_type", "expected"),
    [
        (MetricType.GAUGE, "gauge"),
        (MetricType.COUNTER, "counter"),
        (MetricType.INFO, "gauge"),
        (MetricType.STATESET, "gauge"),
    ],
)
def test_header(metric_type: MetricType, expected: str) -> None:
    """Test the header lines of a family."""
    gen = FamilyGenerator("m", "Some help", metric_type, lambda obj: Family())
    assert gen.header() == f"# HELP m Some help\n# TYPE m {expected}\n"


def test_filter_metric_families() -> None:
    """Test filtering generators keeps order and drops denied families."""
    gens = [
        FamilyGenerator(name, "help", MetricType.GAUGE, lambda obj: Family())
        for name in ("kube_pod_info", "kube_pod_labels", "kube_pod_created")
    ]
    policy = AllowDenyList(deny=["kube_pod_labels"])
    result = filter_metric_families(policy, gens)
    assert [gen.name for gen in result] == ["kube_pod_info", "kube_pod_created"]
    assert extract_headers(result) == [
        "# HELP kube_pod_info help\n# TYPE kube_pod_info gauge\n",
        "# HELP kube_pod_created help\n# TYPE kube_pod_created gauge\n",
    ]


def test_compose_metric_gen_funcs() -> None:
    """Test composing generators renders one family per generator."""
    first = FamilyGenerator(
        "first",
        "First",
        MetricType.GAUGE,
        lambda obj: Family(metrics=[Metric(label_keys=["o"], label_values=[obj], value=1)]),
    )
    second = FamilyGenerator(
        "second", "Second", MetricType.COUNTER, lambda obj: Family()
    )
    generate = compose_metric_gen_funcs([first, second])
    rendered = generate("x")
    assert [family.name for family in rendered] == ["first", "second"]
    assert rendered[0].text == 'first{o="x"} 1.0\n'
    assert rendered[1].text == ""
    assert str(rendered[0]) == (
        '# HELP first First\n# TYPE first gauge\nfirst{o="x"} 1.0\n'
    )


def test_compose_duplicate_names() -> None:
    """Test composing generators with the same family name is rejected."""
    with pytest.raises(ValueError, match="Duplicate metric family names"):
        compose_metric_gen_funcs([_const(1), _const(2)])


def test_compose_failing_generator(caplog: pytest.LogCaptureFixture) -> None:
    """Test a failing generator renders an empty family for that object only."""

    def fail(obj: Any) -> Family:
        raise KeyError("missing")

    generate = compose_metric_gen_funcs(
        [FamilyGenerator("broken", "Broken", MetricType.GAUGE, fail), _const(2)]
    )
    with caplog.at_level(logging.WARNING):
        rendered = generate(object())
    assert [family.text for family in rendered] == ["", "test_const 2.0\n"]
    assert "Failed to generate metric family broken" in caplog.text


def test_metric_duplicate_label_keys() -> None:
    """Test a metric repeating a label key fails to render."""
    metric = Metric(label_keys=["a", "a"], label_values=["1", "2"], value=1)
    with pytest.raises(MetricRenderError, match="duplicate label keys"):
        metric.to_text("m")
