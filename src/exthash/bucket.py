"""bucket.py - Entries and fixed-capacity buckets."""

from __future__ import annotations

from typing import Iterator, NamedTuple

from .exceptions import InternalInconsistencyError
from .utils import assumption


class Entry(NamedTuple):
    """A stored key with its hash and full-width binary hash."""

    key: int
    hash: int
    binary_hash: str


class Bucket:
    """
    Bucket: fixed-capacity container of entries sharing an address prefix.

    - ``address`` has exactly ``local_depth`` bits; every entry's binary hash
      starts with it.
    - Owned by the index's bucket table; directory slots refer to it by id.
    - Never holds more than ``capacity`` entries once an operation returns.
    """

    __slots__ = ("id", "local_depth", "address", "entries", "capacity")

    def __init__(
        self,
        bucket_id: int,
        local_depth: int,
        address: str,
        capacity: int,
        entries: list[Entry] | None = None,
    ) -> None:
        assert assumption(bucket_id, int)
        assert len(address) == local_depth, (
            f"Address {address!r} does not have local depth {local_depth}"
        )
        self.id = bucket_id
        self.local_depth = local_depth
        self.address = address
        self.capacity = capacity
        self.entries: list[Entry] = list(entries) if entries else []

    @property
    def is_full(self) -> bool:
        return len(self.entries) >= self.capacity

    @property
    def free_slots(self) -> int:
        return max(self.capacity - len(self.entries), 0)

    def keys(self) -> list[int]:
        return [entry.key for entry in self.entries]

    def find(self, key: int) -> Entry | None:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def __contains__(self, key: int) -> bool:
        return self.find(key) is not None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def append(self, entry: Entry) -> None:
        if self.is_full:
            raise InternalInconsistencyError(
                f"Bucket {self.id} is full ({self.capacity} entries)"
            )
        self.entries.append(entry)

    def covers(self, address: str) -> bool:
        """True if ``address`` routes to this bucket (its prefix is ours)."""
        return address[: self.local_depth] == self.address

    def __repr__(self) -> str:
        return (
            f"Bucket(id={self.id}, local_depth={self.local_depth}, "
            f"address={self.address!r}, entries={self.keys()}, "
            f"capacity={self.capacity})"
        )
