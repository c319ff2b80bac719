"""exthash - In-memory extendible hashing index."""

from .bucket import Bucket, Entry
from .config import IndexConfig
from .constants import InsertStatus, OpType
from .directory import Directory, DirectoryEntry
from .exceptions import (
    CapacityExceeded,
    ConfigurationError,
    ExtHashError,
    InternalInconsistencyError,
    InvalidKeyError,
    UnknownBucketError,
)
from .hashing import HashPolicy
from .history import SnapshotHistory
from .index import ExtendibleHashIndex, InsertResult, MutationEvent, configure
from .metrics import IndexMetrics
from .snapshot import BucketView, IndexSnapshot

__all__ = [
    "Bucket",
    "BucketView",
    "CapacityExceeded",
    "ConfigurationError",
    "Directory",
    "DirectoryEntry",
    "Entry",
    "ExtHashError",
    "ExtendibleHashIndex",
    "HashPolicy",
    "IndexConfig",
    "IndexMetrics",
    "IndexSnapshot",
    "InsertResult",
    "InsertStatus",
    "InternalInconsistencyError",
    "InvalidKeyError",
    "MutationEvent",
    "OpType",
    "SnapshotHistory",
    "UnknownBucketError",
    "configure",
]

__version__ = "0.1.0"
