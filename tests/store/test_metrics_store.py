"""Tests for the store of rendered metrics."""

from collections.abc import Sequence
from dataclasses import dataclass
import threading

import pytest

from kube_state.metric import (
    Family,
    FamilyGenerator,
    Metric,
    MetricType,
    RenderedFamily,
    compose_metric_gen_funcs,
    extract_headers,
)
from kube_state.objects import ObjectIdentity
from kube_state.store import MetricsStore


@dataclass
class DummyObject:
    namespace: str | None
    name: str
    value: float = 1

    @property
    def identity(self) -> ObjectIdentity:
        return ObjectIdentity(self.namespace, self.name)


GENERATORS = [
    FamilyGenerator(
        "dummy_info",
        "Information about a dummy.",
        MetricType.INFO,
        lambda obj: Family(
            metrics=[Metric(label_keys=["name"], label_values=[obj.name], value=1)]
        ),
    ),
    FamilyGenerator(
        "dummy_value",
        "Value of a dummy.",
        MetricType.GAUGE,
        lambda obj: Family(
            metrics=[
                Metric(label_keys=["name"], label_values=[obj.name], value=obj.value)
            ]
        ),
    ),
]

HEADERS = (
    "# HELP dummy_info Information about a dummy.\n# TYPE dummy_info gauge\n",
    "# HELP dummy_value Value of a dummy.\n# TYPE dummy_value gauge\n",
)


@pytest.fixture
def store() -> MetricsStore:
    return MetricsStore(extract_headers(GENERATORS), compose_metric_gen_funcs(GENERATORS))


def _names(store: MetricsStore) -> list[str]:
    return [identity.name for identity in store.list_keys()]


def test_empty_store_dump(store: MetricsStore) -> None:
    """Test an empty store still writes every family header."""
    assert store.headers == HEADERS
    assert store.dump() == "".join(HEADERS)
    assert len(store) == 0


def test_add_and_dump(store: MetricsStore) -> None:
    """Test the dump groups the lines of each family under its header."""
    store.add(DummyObject("ns", "b", 2))
    store.add(DummyObject("ns", "a", 1))
    assert store.dump() == (
        HEADERS[0]
        + 'dummy_info{name="a"} 1.0\n'
        + 'dummy_info{name="b"} 1.0\n'
        + HEADERS[1]
        + 'dummy_value{name="a"} 1.0\n'
        + 'dummy_value{name="b"} 2.0\n'
    )


def test_update(store: MetricsStore) -> None:
    """Test updating an object replaces its metrics."""
    store.add(DummyObject("ns", "a", 1))
    store.update(DummyObject("ns", "a", 5))
    assert len(store) == 1
    assert 'dummy_value{name="a"} 5.0\n' in store.dump()

    # Updating an object not in the store adds it
    store.update(DummyObject("ns", "b", 3))
    assert sorted(_names(store)) == ["a", "b"]


def test_add_is_idempotent(store: MetricsStore) -> None:
    """Test adding the same object twice holds one entry."""
    obj = DummyObject("ns", "a")
    store.add(obj)
    dump = store.dump()
    store.add(obj)
    assert store.dump() == dump
    assert len(store) == 1


def test_delete(store: MetricsStore) -> None:
    """Test deleting objects, including ones not present."""
    store.add(DummyObject("ns", "a"))
    store.delete(DummyObject("ns", "a"))
    store.delete(DummyObject("ns", "missing"))
    assert len(store) == 0
    assert store.dump() == "".join(HEADERS)


def test_replace(store: MetricsStore) -> None:
    """Test replacing the store contents drops objects not listed."""
    store.add(DummyObject("ns", "a"))
    store.add(DummyObject("ns", "b"))
    store.replace([DummyObject("ns", "b", 7), DummyObject("ns", "c")])
    assert sorted(_names(store)) == ["b", "c"]
    assert 'dummy_value{name="b"} 7.0\n' in store.dump()
    assert 'name="a"' not in store.dump()

    store.replace([])
    assert len(store) == 0


def test_replace_namespace(store: MetricsStore) -> None:
    """Test replacing one namespace keeps the objects of other namespaces."""
    store.add(DummyObject("ns1", "a"))
    store.add(DummyObject("ns2", "b"))
    store.replace([DummyObject("ns1", "c")], namespace="ns1")
    assert sorted(store.list_keys()) == [
        ObjectIdentity("ns1", "c"),
        ObjectIdentity("ns2", "b"),
    ]


def test_render_mismatch() -> None:
    """Test a render function returning the wrong number of families."""

    def generate(obj: DummyObject) -> Sequence[RenderedFamily]:
        return []

    store = MetricsStore(HEADERS, generate)
    with pytest.raises(ValueError, match="Rendered 0 metric families"):
        store.add(DummyObject("ns", "a"))


def test_concurrent_writes_and_dumps(store: MetricsStore) -> None:
    """Test writers and readers from many threads see consistent dumps."""
    errors: list[Exception] = []

    def writer(index: int) -> None:
        for i in range(200):
            store.add(DummyObject("ns", f"obj-{index}-{i}"))
            store.delete(DummyObject("ns", f"obj-{index}-{i - 1}"))

    def replacer() -> None:
        for i in range(200):
            store.replace(
                [DummyObject("rep", f"rep-{k}-{i}") for k in range(3)], namespace="rep"
            )

    def reader() -> None:
        for _ in range(200):
            dump = store.dump()
            info, value = dump.split(HEADERS[1])
            if info.count("\n") - 2 != value.count("\n"):
                errors.append(ValueError(f"Inconsistent dump: {dump}"))
            if info.count('name="rep-') not in (0, 3):
                errors.append(ValueError(f"Partial replace in dump: {dump}"))

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
    threads.append(threading.Thread(target=replacer))
    threads.extend(threading.Thread(target=reader) for _ in range(4))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    names = [identity.name for identity in store.list_keys() if identity.namespace == "ns"]
    assert sorted(names) == [f"obj-{i}-199" for i in range(4)]
    assert len(store) == 7


def test_dump_cluster_scoped_and_namespaced(store: MetricsStore) -> None:
    """Test objects with and without a namespace dump in a stable order."""
    store.add(DummyObject("ns", "b"))
    store.add(DummyObject(None, "a"))
    store.add(DummyObject("", "c"))
    assert store.dump() == (
        HEADERS[0]
        + 'dummy_info{name="a"} 1.0\n'
        + 'dummy_info{name="c"} 1.0\n'
        + 'dummy_info{name="b"} 1.0\n'
        + HEADERS[1]
        + 'dummy_value{name="a"} 1.0\n'
        + 'dummy_value{name="c"} 1.0\n'
        + 'dummy_value{name="b"} 1.0\n'
    )
