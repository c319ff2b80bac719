"""history.py - Recorder of post-mutation snapshots for replay.

Subscribing a SnapshotHistory to an index captures one frame per completed
mutation (reset, directory doubling, split, insert outcome). A presentation
layer can step through the frames to show a cascading split one stage at a
time without ever reading a half-applied state.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator

import msgpack

from .constants import OpType
from .index import ExtendibleHashIndex, MutationEvent
from .snapshot import IndexSnapshot


class SnapshotHistory:
    def __init__(self, max_frames: int | None = None) -> None:
        if max_frames is not None and max_frames < 1:
            raise ValueError(f"max_frames must be >= 1, got {max_frames}")
        self.max_frames = max_frames
        self._frames: deque[tuple[MutationEvent, IndexSnapshot]] = deque(maxlen=max_frames)

    def __call__(self, event: MutationEvent, snapshot: IndexSnapshot) -> None:
        self._frames.append((event, snapshot))

    def attach(self, index: ExtendibleHashIndex) -> SnapshotHistory:
        index.subscribe(self)
        return self

    def detach(self, index: ExtendibleHashIndex) -> None:
        index.unsubscribe(self)

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[tuple[MutationEvent, IndexSnapshot]]:
        return iter(list(self._frames))

    def frames(self, op: OpType | None = None) -> list[tuple[MutationEvent, IndexSnapshot]]:
        if op is None:
            return list(self._frames)
        return [frame for frame in self._frames if frame[0].op is op]

    def events(self) -> list[MutationEvent]:
        return [event for event, _ in self._frames]

    def last(self) -> tuple[MutationEvent, IndexSnapshot] | None:
        return self._frames[-1] if self._frames else None

    def clear(self) -> None:
        self._frames.clear()

    def to_msgpack(self) -> bytes:
        """Encode all frames as one msgpack document."""
        payload = [
            {
                "op": event.op.value,
                "key": event.key,
                "bucket_id": event.bucket_id,
                "new_bucket_id": event.new_bucket_id,
                "global_depth": event.global_depth,
                "reason": event.reason,
                "snapshot": snapshot.to_dict(),
            }
            for event, snapshot in self._frames
        ]
        return msgpack.packb(payload, use_bin_type=True)

    @staticmethod
    def from_msgpack(payload: bytes) -> list[tuple[MutationEvent, IndexSnapshot]]:
        frames = []
        for record in msgpack.unpackb(payload, raw=False):
            event = MutationEvent(
                OpType.from_value(record["op"]),
                key=record["key"],
                bucket_id=record["bucket_id"],
                new_bucket_id=record["new_bucket_id"],
                global_depth=record["global_depth"],
                reason=record["reason"],
            )
            frames.append((event, IndexSnapshot.from_dict(record["snapshot"])))
        return frames
