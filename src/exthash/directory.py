"""directory.py - Directory of bucket pointers for extendible hashing.

The directory is a numpy array of bucket ids with ``2 ** global_depth``
slots. Slot ``i`` has the address ``format(i, f"0{global_depth}b")``, so
addresses are implicit and the most significant bit comes first. Doubling
appends one bit to every address: slot ``i`` becomes slots ``2i`` (bit 0)
and ``2i + 1`` (bit 1), both still pointing at the old bucket.
"""

from __future__ import annotations

from typing import Iterable, Iterator, NamedTuple

import numpy as np
from numpy.typing import NDArray

from .bucket import Bucket
from .constants import BUCKET_POINTER_DTYPE, UNASSIGNED_SLOT
from .exceptions import InternalInconsistencyError
from .logger import get_logger

logger = get_logger(__name__)


class DirectoryEntry(NamedTuple):
    address: str
    bucket_id: int


class Directory:
    """Bucket pointers indexed by the leading ``global_depth`` hash bits."""

    def __init__(self, global_depth: int, bucket_ids: Iterable[int]) -> None:
        self.global_depth: int = global_depth
        self.pointers: NDArray[np.uint64] = np.array(
            list(bucket_ids), dtype=BUCKET_POINTER_DTYPE
        )
        "Bucket id per slot"
        if len(self.pointers) != 2**global_depth:
            raise InternalInconsistencyError(
                f"Directory of depth {global_depth} needs {2**global_depth} "
                f"slots, got {len(self.pointers)}"
            )

    def __len__(self) -> int:
        return len(self.pointers)

    def address(self, slot: int) -> str:
        return format(slot, f"0{self.global_depth}b")

    def slot_of(self, address: str) -> int:
        if len(address) != self.global_depth:
            raise InternalInconsistencyError(
                f"Address {address!r} does not match global depth {self.global_depth}"
            )
        slot = int(address, 2)
        if not 0 <= slot < len(self.pointers):
            raise InternalInconsistencyError(f"No directory slot for {address!r}")
        return slot

    def bucket_id_at(self, slot: int) -> int:
        if not 0 <= slot < len(self.pointers):
            raise InternalInconsistencyError(
                f"Slot {slot} outside directory of size {len(self.pointers)}"
            )
        return int(self.pointers[slot])

    def double(self) -> None:
        """Double the directory (increase global_depth by 1)."""
        self.pointers = np.repeat(self.pointers, 2)
        self.global_depth += 1
        logger.info(
            f"[Directory.double] global_depth={self.global_depth}, "
            f"size={len(self.pointers)}"
        )

    def repoint(self, buckets: Iterable[Bucket]) -> None:
        """Point every slot at the bucket whose address prefixes the slot's.

        A bucket of local depth ``d`` owns the contiguous slot range that
        starts at ``int(address, 2) << (global_depth - d)``.
        """
        pointers = np.full(len(self.pointers), UNASSIGNED_SLOT, dtype=BUCKET_POINTER_DTYPE)
        for bucket in buckets:
            shift = self.global_depth - bucket.local_depth
            if shift < 0:
                raise InternalInconsistencyError(
                    f"Bucket {bucket.id} local depth {bucket.local_depth} exceeds "
                    f"global depth {self.global_depth}"
                )
            start = int(bucket.address, 2) << shift
            stop = start + (1 << shift)
            if np.any(pointers[start:stop] != UNASSIGNED_SLOT):
                raise InternalInconsistencyError(
                    f"Bucket {bucket.id} ({bucket.address!r}) overlaps slots "
                    f"already owned by another bucket"
                )
            pointers[start:stop] = bucket.id
        unassigned = np.flatnonzero(pointers == UNASSIGNED_SLOT)
        if len(unassigned):
            addresses = [self.address(int(s)) for s in unassigned[:4]]
            raise InternalInconsistencyError(
                f"Directory slots {addresses} are not covered by any bucket"
            )
        self.pointers = pointers

    def slots_for(self, bucket_id: int) -> list[int]:
        return [int(s) for s in np.flatnonzero(self.pointers == bucket_id)]

    def entries(self) -> Iterator[DirectoryEntry]:
        for slot, bucket_id in enumerate(self.pointers):
            yield DirectoryEntry(self.address(slot), int(bucket_id))

    def __repr__(self) -> str:
        return f"Directory(global_depth={self.global_depth}, pointers={self.pointers.tolist()})"
