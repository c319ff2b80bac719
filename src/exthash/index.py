"""index.py - Main ExtendibleHashIndex class with proper extendible hashing implementation"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

import numpy as np

from .bucket import Bucket, Entry
from .config import IndexConfig
from .constants import (
    DEFAULT_BUCKET_CAPACITY,
    DEFAULT_HASH_MODULO,
    DEFAULT_MAX_GLOBAL_DEPTH,
    INITIAL_BUCKET_ADDRESSES,
    INITIAL_GLOBAL_DEPTH,
    InsertStatus,
    OpType,
)
from .directory import Directory
from .exceptions import (
    CapacityExceeded,
    InternalInconsistencyError,
    InvalidKeyError,
    UnknownBucketError,
)
from .hashing import HashPolicy
from .logger import get_logger
from .metrics import IndexMetrics
from .snapshot import IndexSnapshot
from .utils import assumption

logger = get_logger(__name__)


@dataclass(frozen=True)
class MutationEvent:
    """What a completed mutation did; handed to observers with a snapshot."""

    op: OpType
    key: int | None = None
    bucket_id: int | None = None
    new_bucket_id: int | None = None
    global_depth: int = INITIAL_GLOBAL_DEPTH
    reason: str | None = None


Observer = Callable[[MutationEvent, IndexSnapshot], None]
Frame = tuple[MutationEvent, IndexSnapshot]


@dataclass(frozen=True)
class InsertResult:
    """Outcome of one insert call."""

    status: InsertStatus
    key: int
    bucket_id: int | None = None
    splits: int = 0
    reason: str | None = None

    @property
    def inserted(self) -> bool:
        return self.status is InsertStatus.INSERTED

    @property
    def rejected(self) -> bool:
        return self.status is InsertStatus.REJECTED

    def raise_for_status(self) -> InsertResult:
        """Raise CapacityExceeded for a rejected insert, else return self."""
        if self.rejected:
            raise CapacityExceeded(
                self.reason or f"Key {self.key} was rejected",
                key=self.key,
                bucket_id=self.bucket_id,
            )
        return self


class ExtendibleHashIndex:
    """
    ExtendibleHashIndex: in-memory extendible hash index over integer keys.

    - The directory holds ``2 ** global_depth`` bucket ids; a bucket of local
      depth ``d`` is referenced by ``2 ** (global_depth - d)`` slots.
    - Overflowing buckets are split, doubling the directory first when the
      bucket's local depth equals the global depth.
    - Inserts that cannot be placed within ``max_global_depth`` are rejected,
      not dropped.
    - One writer at a time; a writer lock keeps snapshots consistent.
    """

    def __init__(
        self,
        config: IndexConfig | None = None,
        metrics: IndexMetrics | None = None,
    ) -> None:
        self._writer_lock = threading.RLock()
        self._observers: list[Observer] = []
        self._pending: list[Frame] | None = None
        "Frames queued by the mutation in progress, delivered when it completes"
        self.metrics = metrics if metrics is not None else IndexMetrics()
        self.configure(config if config is not None else IndexConfig())

    # Configuration and lifecycle

    def configure(self, config: IndexConfig) -> None:
        """Replace the whole index state with a fresh one built from ``config``."""
        assert assumption(config, IndexConfig)
        config.validate()
        with self._mutation():
            self.config = config
            self.policy = HashPolicy.from_config(config)
            self.buckets: dict[int, Bucket] = {}
            "Bucket table, keyed by bucket id"
            for bucket_id, address in enumerate(INITIAL_BUCKET_ADDRESSES):
                self.buckets[bucket_id] = Bucket(
                    bucket_id, len(address), address, config.bucket_capacity
                )
            self.directory = Directory(
                INITIAL_GLOBAL_DEPTH, range(len(INITIAL_BUCKET_ADDRESSES))
            )
            self.next_bucket_id: int = len(INITIAL_BUCKET_ADDRESSES)
            "Counter for bucket ids, used for new buckets"
            self._num_entries = 0
            logger.info(
                f"[ExtendibleHashIndex.configure] hash_modulo={config.hash_modulo}, "
                f"max_global_depth={config.max_global_depth}, "
                f"bucket_capacity={config.bucket_capacity}"
            )
            self._refresh_metrics()
            self._notify(MutationEvent(OpType.RESET, global_depth=self.global_depth))

    def reset(self) -> None:
        """Discard all keys and return to the two-bucket starting state."""
        self.configure(self.config)

    @property
    def global_depth(self) -> int:
        return self.directory.global_depth

    @property
    def max_global_depth(self) -> int:
        return self.config.max_global_depth

    @property
    def bucket_capacity(self) -> int:
        return self.config.bucket_capacity

    @property
    def hash_modulo(self) -> int:
        return self.config.hash_modulo

    @property
    def num_buckets(self) -> int:
        return len(self.buckets)

    # Observers

    def subscribe(self, observer: Observer) -> Observer:
        """Call ``observer(event, snapshot)`` after every completed mutation."""
        assert callable(observer), "observer must be callable"
        self._observers.append(observer)
        return observer

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.remove(observer)

    @contextmanager
    def _mutation(self):
        """Hold the writer lock; deliver queued frames once the outermost mutation ends.

        Observers never run while the index is between states. If the mutation
        raises, its frames are discarded.
        """
        with self._writer_lock:
            if self._pending is not None:
                yield
                return
            self._pending = []
            try:
                yield
                frames = self._pending
            finally:
                self._pending = None
            self._deliver(frames)

    def _notify(self, event: MutationEvent) -> None:
        if not self._observers or self._pending is None:
            return
        self._pending.append((event, self.snapshot()))

    def _deliver(self, frames: list[Frame]) -> None:
        for event, snapshot in frames:
            for observer in list(self._observers):
                try:
                    observer(event, snapshot)
                except Exception as e:
                    logger.exception(
                        f"[ExtendibleHashIndex._deliver] Observer {observer!r} "
                        f"failed on {event.op.name}: {e}"
                    )

    # Lookup

    def _check_key(self, key) -> int:
        assert assumption(key, int, np.integer)
        key = int(key)
        if key < 0:
            raise InvalidKeyError(key)
        return key

    def make_entry(self, key: int) -> Entry:
        key = self._check_key(key)
        hash_value = self.policy.hash(key)
        return Entry(key, hash_value, self.policy.binary(hash_value))

    def lookup_bucket(self, key: int) -> Bucket:
        """Return the bucket the directory routes ``key`` to."""
        key = self._check_key(key)
        hash_value = self.policy.hash(key)
        address = self.policy.binary_address(hash_value, self.global_depth)
        slot = self.directory.slot_of(address)
        bucket_id = self.directory.bucket_id_at(slot)
        bucket = self.buckets.get(bucket_id)
        if bucket is None:
            raise InternalInconsistencyError(
                f"Directory slot {address!r} points at missing bucket {bucket_id}"
            )
        logger.debug(
            f"[ExtendibleHashIndex.lookup_bucket] key={key} hash={hash_value} "
            f"address={address} -> bucket {bucket_id}"
        )
        return bucket

    def lookup(self, key: int) -> Bucket | None:
        """Return the bucket holding ``key``, or None if it is not stored."""
        bucket = self.lookup_bucket(key)
        return bucket if int(key) in bucket else None

    def _find_holder(self, key: int) -> Bucket | None:
        for bucket in self.buckets.values():
            if key in bucket:
                return bucket
        return None

    def __contains__(self, key) -> bool:
        if not isinstance(key, (int, np.integer)) or key < 0:
            return False
        return self.lookup(key) is not None

    def __len__(self) -> int:
        return self._num_entries

    def __iter__(self) -> Iterator[int]:
        for bucket_id in sorted(self.buckets):
            yield from self.buckets[bucket_id].keys()

    def entries_with_hash(self, hash_value: int) -> list[int]:
        """Keys currently stored whose hash equals ``hash_value``."""
        return [
            entry.key
            for bucket_id in sorted(self.buckets)
            for entry in self.buckets[bucket_id].entries
            if entry.hash == hash_value
        ]

    def collisions(self, key: int) -> list[int]:
        """Stored keys other than ``key`` that share its hash."""
        key = self._check_key(key)
        return [k for k in self.entries_with_hash(self.policy.hash(key)) if k != key]

    # Insert

    def insert(self, key: int) -> InsertResult:
        """Insert ``key``; duplicates are no-ops and overflow triggers splits."""
        key = self._check_key(key)
        with self._mutation():
            holder = self._find_holder(key)
            if holder is not None:
                logger.debug(
                    f"[ExtendibleHashIndex.insert] key={key} already in bucket {holder.id}"
                )
                return self._finish_insert(
                    InsertResult(InsertStatus.ALREADY_PRESENT, key, holder.id),
                    OpType.DUPLICATE,
                )

            entry = self.make_entry(key)
            collisions = self.entries_with_hash(entry.hash)
            if collisions:
                logger.info(
                    f"[ExtendibleHashIndex.insert] key={key} shares hash "
                    f"{entry.hash} with {collisions}"
                )

            split_limit = self.max_global_depth + 1
            splits = 0
            while True:
                bucket = self.lookup_bucket(key)
                if not bucket.is_full:
                    bucket.append(entry)
                    self._num_entries += 1
                    return self._finish_insert(
                        InsertResult(InsertStatus.INSERTED, key, bucket.id, splits),
                        OpType.INSERT,
                    )
                if bucket.local_depth >= self.max_global_depth:
                    reason = (
                        f"Bucket {bucket.id} ({bucket.address!r}) is full at "
                        f"max_global_depth={self.max_global_depth}"
                    )
                    break
                # Backstop only: every split deepens the routed bucket, so the
                # max_global_depth check above rejects before this can fire.
                if splits >= split_limit:
                    reason = (
                        f"Gave up after {splits} splits; bucket_capacity="
                        f"{self.bucket_capacity} and max_global_depth="
                        f"{self.max_global_depth} cannot hold key {key}"
                    )
                    break
                self._split(bucket)
                splits += 1

            logger.warning(f"[ExtendibleHashIndex.insert] Rejected key={key}: {reason}")
            return self._finish_insert(
                InsertResult(InsertStatus.REJECTED, key, bucket.id, splits, reason),
                OpType.REJECT,
            )

    def insert_many(self, keys) -> list[InsertResult]:
        return [self.insert(key) for key in keys]

    def _finish_insert(self, result: InsertResult, op: OpType) -> InsertResult:
        self.metrics.record_insert(result.status)
        self._refresh_metrics()
        self._notify(
            MutationEvent(
                op,
                key=result.key,
                bucket_id=result.bucket_id,
                global_depth=self.global_depth,
                reason=result.reason,
            )
        )
        return result

    # Split

    def split(self, bucket_id: int) -> Bucket:
        """Split bucket ``bucket_id`` and return the newly created sibling."""
        with self._mutation():
            bucket = self.buckets.get(bucket_id)
            if bucket is None:
                raise UnknownBucketError(bucket_id)
            if bucket.local_depth >= self.max_global_depth:
                raise CapacityExceeded(
                    f"Bucket {bucket_id} is already at "
                    f"max_global_depth={self.max_global_depth}",
                    bucket_id=bucket_id,
                    local_depth=bucket.local_depth,
                )
            return self._split(bucket)

    def _split(self, bucket: Bucket) -> Bucket:
        doubled = False
        if bucket.local_depth == self.global_depth:
            self.directory.double()
            doubled = True
            self._notify(
                MutationEvent(
                    OpType.DOUBLE, bucket_id=bucket.id, global_depth=self.global_depth
                )
            )

        position = bucket.local_depth
        new_bucket = Bucket(
            self.next_bucket_id,
            bucket.local_depth + 1,
            bucket.address + "1",
            self.bucket_capacity,
        )
        self.next_bucket_id += 1
        old_entries = bucket.entries
        bucket.entries = []
        bucket.local_depth += 1
        bucket.address += "0"

        for entry in old_entries:
            if self.policy.bit(entry.hash, position):
                new_bucket.entries.append(entry)
            else:
                bucket.entries.append(entry)

        self.buckets[new_bucket.id] = new_bucket
        self.directory.repoint(self.buckets.values())

        logger.info(
            f"[ExtendibleHashIndex.split] bucket {bucket.id} -> "
            f"{bucket.id}:{bucket.address} ({len(bucket)} entries), "
            f"{new_bucket.id}:{new_bucket.address} ({len(new_bucket)} entries), "
            f"global_depth={self.global_depth}"
        )
        self.metrics.record_split(doubled)
        self._refresh_metrics()
        self._notify(
            MutationEvent(
                OpType.SPLIT,
                bucket_id=bucket.id,
                new_bucket_id=new_bucket.id,
                global_depth=self.global_depth,
            )
        )
        return new_bucket

    # Inspection

    def snapshot(self) -> IndexSnapshot:
        with self._writer_lock:
            return IndexSnapshot.capture(
                self.directory,
                self.buckets,
                max_global_depth=self.max_global_depth,
                bucket_capacity=self.bucket_capacity,
                hash_modulo=self.hash_modulo,
            )

    def validate(self) -> bool:
        """Check every structural invariant, raising on the first violation."""
        with self._writer_lock:
            gd = self.global_depth
            if len(self.directory) != 2**gd:
                raise InternalInconsistencyError(
                    f"Directory size {len(self.directory)} != 2**{gd}"
                )
            if not 1 <= gd <= self.max_global_depth:
                raise InternalInconsistencyError(
                    f"global_depth {gd} outside 1..{self.max_global_depth}"
                )
            seen: dict[int, int] = {}
            for bucket in self.buckets.values():
                if not 1 <= bucket.local_depth <= gd:
                    raise InternalInconsistencyError(
                        f"Bucket {bucket.id} local_depth {bucket.local_depth} "
                        f"outside 1..{gd}"
                    )
                if len(bucket.address) != bucket.local_depth:
                    raise InternalInconsistencyError(
                        f"Bucket {bucket.id} address {bucket.address!r} does not "
                        f"have local_depth {bucket.local_depth} bits"
                    )
                slots = self.directory.slots_for(bucket.id)
                if len(slots) != 2 ** (gd - bucket.local_depth):
                    raise InternalInconsistencyError(
                        f"Bucket {bucket.id} at local_depth {bucket.local_depth} is "
                        f"referenced by {len(slots)} slots, expected "
                        f"{2 ** (gd - bucket.local_depth)}"
                    )
                if len(bucket) > self.bucket_capacity:
                    raise InternalInconsistencyError(
                        f"Bucket {bucket.id} holds {len(bucket)} entries, "
                        f"capacity {self.bucket_capacity}"
                    )
                for entry in bucket.entries:
                    if entry.key in seen:
                        raise InternalInconsistencyError(
                            f"Key {entry.key} in buckets {seen[entry.key]} and {bucket.id}"
                        )
                    seen[entry.key] = bucket.id
                    if not bucket.covers(entry.binary_hash):
                        raise InternalInconsistencyError(
                            f"Key {entry.key} ({entry.binary_hash}) does not match "
                            f"bucket {bucket.id} address {bucket.address!r}"
                        )
            for entry in self.directory.entries():
                if len(entry.address) != gd:
                    raise InternalInconsistencyError(
                        f"Directory address {entry.address!r} is not {gd} bits"
                    )
                owners = [b.id for b in self.buckets.values() if b.covers(entry.address)]
                if owners != [entry.bucket_id]:
                    raise InternalInconsistencyError(
                        f"Slot {entry.address!r} points at {entry.bucket_id}, "
                        f"covering buckets are {owners}"
                    )
            if len(seen) != self._num_entries:
                raise InternalInconsistencyError(
                    f"Entry count {self._num_entries} != stored keys {len(seen)}"
                )
            return True

    def stats(self) -> dict[str, int]:
        return {
            "global_depth": self.global_depth,
            "directory_size": len(self.directory),
            "num_buckets": self.num_buckets,
            "num_entries": self._num_entries,
            "next_bucket_id": self.next_bucket_id,
        }

    def _refresh_metrics(self) -> None:
        self.metrics.update_structure(self.global_depth, self.num_buckets, self._num_entries)

    def debug_dump(self) -> str:
        """Return debug information about the index structure."""
        output = [
            f"ExtendibleHashIndex debug dump (global_depth={self.global_depth}, "
            f"num_buckets={self.num_buckets})",
            f"Config: hash_modulo={self.hash_modulo}, "
            f"max_global_depth={self.max_global_depth}, "
            f"bucket_capacity={self.bucket_capacity}",
            f"Directory size: {len(self.directory)}",
        ]
        output.extend(
            f"  Dir[{entry.address}] -> Bucket {entry.bucket_id}"
            for entry in self.directory.entries()
        )
        output.extend(
            self.debug_dump_bucket(bucket_id) for bucket_id in sorted(self.buckets)
        )
        return "\n".join(output)

    def debug_dump_bucket(self, bucket_id: int) -> str:
        """Return debug information about a specific bucket."""
        bucket = self.buckets.get(bucket_id)
        if bucket is None:
            return f"Bucket {bucket_id}: Not found"
        output = [
            f"Bucket {bucket_id}:",
            f"  Address: {bucket.address}",
            f"  Local depth: {bucket.local_depth}",
            f"  Entry count: {len(bucket)}/{bucket.capacity}",
            "  Entries:",
        ]
        output.extend(
            f"    {entry.key} (hash={entry.hash}, bits={entry.binary_hash})"
            for entry in bucket.entries
        )
        return "\n".join(output)

    def __repr__(self) -> str:
        return (
            f"ExtendibleHashIndex(global_depth={self.global_depth}, "
            f"buckets={self.num_buckets}, entries={self._num_entries})"
        )


def configure(
    hash_modulo: int = DEFAULT_HASH_MODULO,
    max_global_depth: int = DEFAULT_MAX_GLOBAL_DEPTH,
    bucket_capacity: int = DEFAULT_BUCKET_CAPACITY,
    metrics: IndexMetrics | None = None,
) -> ExtendibleHashIndex:
    """Create a fresh index in the two-bucket, depth-1 starting state."""
    config = IndexConfig(
        hash_modulo=hash_modulo,
        max_global_depth=max_global_depth,
        bucket_capacity=bucket_capacity,
    )
    return ExtendibleHashIndex(config, metrics=metrics)
