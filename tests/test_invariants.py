"""
Structural invariants over randomized insert sequences.
After every insert: directory size, coverage, capacity, depth bounds and routing hold.
"""

import random

import pytest

from exthash import InsertStatus, configure

CONFIGS = [
    (97, 4, 3),
    (16, 4, 2),
    (1000, 6, 2),
    (2, 3, 1),
    (7, 3, 2),
    (4096, 8, 4),
]


def check_invariants(index, inserted):
    snapshot = index.snapshot()
    gd = snapshot.global_depth
    # Directory size and coverage
    assert len(snapshot.directory) == 2**gd
    addresses = [entry.address for entry in snapshot.directory]
    assert addresses == [format(i, f"0{gd}b") for i in range(2**gd)]
    # Depth bounds and capacity
    assert 1 <= gd <= snapshot.max_global_depth
    for bucket in snapshot.buckets.values():
        assert 1 <= bucket.local_depth <= gd
        assert len(bucket.entries) <= snapshot.bucket_capacity
        # Exactly 2**(gd - ld) slots point at each bucket
        pointing = [e for e in snapshot.directory if e.bucket_id == bucket.id]
        assert len(pointing) == 2 ** (gd - bucket.local_depth)
        assert all(e.address.startswith(bucket.address) for e in pointing)
    # Every key once, routed to its holder
    stored = [key for b in snapshot.buckets.values() for key in b.keys]
    assert len(stored) == len(set(stored))
    assert set(stored) == inserted
    for key in inserted:
        assert key in index.lookup_bucket(key)
    assert index.validate()


@pytest.mark.parametrize("hash_modulo, max_global_depth, bucket_capacity", CONFIGS)
def test_random_inserts_preserve_invariants(hash_modulo, max_global_depth, bucket_capacity):
    rng = random.Random(hash_modulo * 31 + max_global_depth)
    index = configure(hash_modulo, max_global_depth, bucket_capacity)
    inserted = set()
    for _ in range(150):
        key = rng.randrange(0, 10 * hash_modulo)
        result = index.insert(key)
        if result.status is InsertStatus.INSERTED:
            inserted.add(key)
        elif result.status is InsertStatus.ALREADY_PRESENT:
            assert key in inserted
        else:
            assert key not in index
        check_invariants(index, inserted)


@pytest.mark.parametrize("hash_modulo, max_global_depth, bucket_capacity", CONFIGS)
def test_split_is_deterministic(hash_modulo, max_global_depth, bucket_capacity):
    rng = random.Random(7)
    keys = [rng.randrange(0, 5 * hash_modulo) for _ in range(60)]
    first = configure(hash_modulo, max_global_depth, bucket_capacity)
    second = configure(hash_modulo, max_global_depth, bucket_capacity)
    first_results = first.insert_many(keys)
    second_results = second.insert_many(keys)
    assert first_results == second_results
    assert first.snapshot() == second.snapshot()


def test_sequential_keys_fill_full_directory():
    index = configure(hash_modulo=16, max_global_depth=4, bucket_capacity=1)
    results = index.insert_many(range(16))
    assert all(r.inserted for r in results)
    assert index.global_depth == 4
    assert index.num_buckets == 16
    check_invariants(index, set(range(16)))
