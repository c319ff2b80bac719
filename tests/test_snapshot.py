"""
Snapshots: consistent read-only views and msgpack encoding.
"""

import dataclasses

import pytest

from exthash import BucketView, ExtHashError, IndexSnapshot


@pytest.fixture
def populated(make_index):
    index = make_index(hash_modulo=16)
    index.insert_many([1, 2, 3, 4, 9])
    return index


def test_snapshot_contents(populated):
    snapshot = populated.snapshot()
    assert snapshot.global_depth == 2
    assert snapshot.hash_modulo == 16
    assert snapshot.bucket_capacity == 3
    assert snapshot.max_global_depth == 4
    assert [tuple(e) for e in snapshot.directory] == [
        ("00", 0),
        ("01", 2),
        ("10", 1),
        ("11", 1),
    ]
    assert list(snapshot.buckets) == [0, 1, 2]
    assert snapshot.buckets[0].keys == (1, 2, 3)
    assert snapshot.buckets[1].keys == (9,)
    assert snapshot.bucket_for_address("11").id == 1
    assert snapshot.num_entries == 5


def test_snapshot_is_read_only(populated):
    snapshot = populated.snapshot()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.global_depth = 3
    with pytest.raises(TypeError):
        snapshot.buckets[7] = snapshot.buckets[0]


def test_snapshot_does_not_follow_later_mutations(populated):
    snapshot = populated.snapshot()
    populated.insert(10)
    assert 10 not in snapshot.buckets[1].keys
    assert snapshot != populated.snapshot()


def test_msgpack_round_trip(populated):
    snapshot = populated.snapshot()
    payload = snapshot.to_msgpack()
    assert isinstance(payload, bytes)
    assert IndexSnapshot.from_msgpack(payload) == snapshot


def test_to_dict_layout(populated):
    data = populated.snapshot().to_dict()
    assert data["version"] == 1
    assert data["directory"][1] == {"address": "01", "bucket_id": 2}
    assert data["buckets"][0]["entries"][0] == {
        "key": 1,
        "hash": 1,
        "binary_hash": "0001",
    }
    assert BucketView.from_dict(data["buckets"][2]).address == "01"


def test_unknown_format_version_is_rejected(populated):
    data = populated.snapshot().to_dict()
    data["version"] = 99
    with pytest.raises(ExtHashError):
        IndexSnapshot.from_dict(data)
