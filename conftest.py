import pytest

# Import exthash lazily inside fixtures so collection does not pull in numpy
# before pytest has configured the environment.


@pytest.fixture
def index():
    """Index in the default configuration (hash_modulo=97, depth 4, capacity 3)."""
    from exthash import configure

    return configure()


@pytest.fixture
def make_index():
    """Factory fixture: build an index with explicit configuration."""
    from exthash import configure

    def _make(hash_modulo=97, max_global_depth=4, bucket_capacity=3):
        return configure(
            hash_modulo=hash_modulo,
            max_global_depth=max_global_depth,
            bucket_capacity=bucket_capacity,
        )

    return _make


@pytest.fixture
def policy():
    from exthash import HashPolicy

    return HashPolicy(hash_modulo=97, max_global_depth=4)


@pytest.fixture
def history(index):
    from exthash import SnapshotHistory

    recorder = SnapshotHistory().attach(index)
    try:
        yield recorder
    finally:
        recorder.detach(index)


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "EXTHASH_HASH_MODULO",
        "EXTHASH_MAX_GLOBAL_DEPTH",
        "EXTHASH_BUCKET_CAPACITY",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
