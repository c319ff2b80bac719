"""snapshot.py - Read-only, post-operation views of an index.

A snapshot is taken under the index's writer lock and copies everything it
holds, so it always reflects one complete state and never a split in
progress. Presentation layers consume snapshots (or msgpack-encoded ones)
instead of touching the live index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import msgpack

from .bucket import Bucket, Entry
from .constants import SNAPSHOT_FORMAT_VERSION
from .directory import Directory, DirectoryEntry
from .exceptions import ExtHashError


@dataclass(frozen=True)
class BucketView:
    id: int
    local_depth: int
    address: str
    capacity: int
    entries: tuple[Entry, ...]

    @classmethod
    def of(cls, bucket: Bucket) -> BucketView:
        return cls(
            id=bucket.id,
            local_depth=bucket.local_depth,
            address=bucket.address,
            capacity=bucket.capacity,
            entries=tuple(bucket.entries),
        )

    @property
    def keys(self) -> tuple[int, ...]:
        return tuple(entry.key for entry in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "local_depth": self.local_depth,
            "address": self.address,
            "capacity": self.capacity,
            "entries": [
                {"key": e.key, "hash": e.hash, "binary_hash": e.binary_hash}
                for e in self.entries
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BucketView:
        return cls(
            id=data["id"],
            local_depth=data["local_depth"],
            address=data["address"],
            capacity=data["capacity"],
            entries=tuple(
                Entry(e["key"], e["hash"], e["binary_hash"]) for e in data["entries"]
            ),
        )


@dataclass(frozen=True)
class IndexSnapshot:
    global_depth: int
    max_global_depth: int
    bucket_capacity: int
    hash_modulo: int
    directory: tuple[DirectoryEntry, ...]
    buckets: Mapping[int, BucketView] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.buckets, MappingProxyType):
            object.__setattr__(self, "buckets", MappingProxyType(dict(self.buckets)))

    @classmethod
    def capture(
        cls,
        directory: Directory,
        buckets: Mapping[int, Bucket],
        max_global_depth: int,
        bucket_capacity: int,
        hash_modulo: int,
    ) -> IndexSnapshot:
        return cls(
            global_depth=directory.global_depth,
            max_global_depth=max_global_depth,
            bucket_capacity=bucket_capacity,
            hash_modulo=hash_modulo,
            directory=tuple(directory.entries()),
            buckets={bid: BucketView.of(b) for bid, b in sorted(buckets.items())},
        )

    def bucket_for_address(self, address: str) -> BucketView:
        for entry in self.directory:
            if entry.address == address:
                return self.buckets[entry.bucket_id]
        raise KeyError(address)

    @property
    def num_entries(self) -> int:
        return sum(len(b.entries) for b in self.buckets.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_FORMAT_VERSION,
            "global_depth": self.global_depth,
            "max_global_depth": self.max_global_depth,
            "bucket_capacity": self.bucket_capacity,
            "hash_modulo": self.hash_modulo,
            "directory": [
                {"address": e.address, "bucket_id": e.bucket_id}
                for e in self.directory
            ],
            "buckets": [b.to_dict() for b in self.buckets.values()],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexSnapshot:
        version = data.get("version")
        if version != SNAPSHOT_FORMAT_VERSION:
            raise ExtHashError(f"Unsupported snapshot format version: {version!r}")
        buckets = (BucketView.from_dict(b) for b in data["buckets"])
        return cls(
            global_depth=data["global_depth"],
            max_global_depth=data["max_global_depth"],
            bucket_capacity=data["bucket_capacity"],
            hash_modulo=data["hash_modulo"],
            directory=tuple(
                DirectoryEntry(e["address"], e["bucket_id"]) for e in data["directory"]
            ),
            buckets={b.id: b for b in buckets},
        )

    def to_msgpack(self) -> bytes:
        return msgpack.packb(self.to_dict(), use_bin_type=True)

    @classmethod
    def from_msgpack(cls, payload: bytes) -> IndexSnapshot:
        return cls.from_dict(msgpack.unpackb(payload, raw=False))
