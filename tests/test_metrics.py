"""
Prometheus metrics: insert outcomes, splits, doublings and structure gauges.
"""

from prometheus_client import CollectorRegistry

from exthash import IndexMetrics, configure


def test_metrics_track_inserts_and_splits():
    index = configure(hash_modulo=16, max_global_depth=4, bucket_capacity=3)
    index.insert_many([1, 2, 3, 4, 4])
    values = index.metrics.as_dict()
    assert values["inserts"] == {"inserted": 4.0, "already_present": 1.0, "rejected": 0.0}
    assert values["splits"] == 1.0
    assert values["directory_doublings"] == 1.0
    assert values["global_depth"] == 2.0
    assert values["buckets"] == 3.0
    assert values["entries"] == 4.0


def test_metrics_track_rejections(index):
    index.insert_many([1, 2, 3, 4])
    values = index.metrics.as_dict()
    assert values["inserts"]["rejected"] == 1.0
    assert values["splits"] == 3.0
    assert values["directory_doublings"] == 3.0


def test_split_without_doubling_is_counted(index):
    index.split(0)
    index.split(1)
    values = index.metrics.as_dict()
    assert values["splits"] == 2.0
    assert values["directory_doublings"] == 1.0


def test_separate_indexes_have_separate_registries():
    first = configure()
    second = configure()
    first.insert(1)
    assert second.metrics.as_dict()["inserts"]["inserted"] == 0.0


def test_shared_registry_and_exposition():
    registry = CollectorRegistry()
    metrics = IndexMetrics(registry=registry)
    index = configure(metrics=metrics)
    index.insert(1)
    assert registry.get_sample_value("exthash_inserts_total", {"outcome": "inserted"}) == 1.0
    text = metrics.expose()
    assert b"exthash_splits_total" in text
    assert b"exthash_global_depth 1.0" in text
