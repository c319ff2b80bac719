"""constants.py - Canonical dtypes, enums and defaults for exthash."""

from __future__ import annotations

from enum import Enum

import numpy as np

from .logger import get_logger

logger = get_logger(__name__)

# Directory slot: id of the bucket the slot points to
BUCKET_POINTER_DTYPE = np.dtype("<u8")

# Marks a directory slot no bucket has claimed during re-resolution
UNASSIGNED_SLOT = np.iinfo(BUCKET_POINTER_DTYPE).max

# Defaults of the initial configuration
DEFAULT_HASH_MODULO: int = 97
DEFAULT_MAX_GLOBAL_DEPTH: int = 4
DEFAULT_BUCKET_CAPACITY: int = 3

# Lower bounds enforced at configure time
MIN_HASH_MODULO: int = 2
MIN_GLOBAL_DEPTH: int = 1
MIN_BUCKET_CAPACITY: int = 1

# Initial layout: two buckets at depth 1
INITIAL_GLOBAL_DEPTH: int = 1
INITIAL_BUCKET_ADDRESSES: tuple[str, ...] = ("0", "1")

# Environment overrides read by IndexConfig.from_env()
ENV_HASH_MODULO = "EXTHASH_HASH_MODULO"
ENV_MAX_GLOBAL_DEPTH = "EXTHASH_MAX_GLOBAL_DEPTH"
ENV_BUCKET_CAPACITY = "EXTHASH_BUCKET_CAPACITY"

# Snapshot encoding version, bumped on layout changes
SNAPSHOT_FORMAT_VERSION: int = 1


class InsertStatus(Enum):
    INSERTED = "inserted"
    ALREADY_PRESENT = "already_present"
    REJECTED = "rejected"


class OpType(Enum):
    RESET = 1
    INSERT = 2
    DUPLICATE = 3
    SPLIT = 4
    DOUBLE = 5
    REJECT = 6

    @classmethod
    def from_value(cls, value: int) -> OpType:
        try:
            return cls(value)
        except ValueError as e:
            logger.warning(f"Unknown OpType value encountered: {value}")
            raise ValueError(f"Unknown OpType value: {value}") from e
