"""exceptions.py - Exception hierarchy for the extendible hash index.

Defines exceptions for:
- Invalid configuration (hash modulo, depths, bucket capacity)
- Keys the index cannot accept
- Inserts that cannot be placed within the configured depth
- Directory/bucket invariant violations (defects, not user errors)
"""

from __future__ import annotations


class ExtHashError(Exception):
    """Base exception for all exthash errors."""

    pass


class ConfigurationError(ExtHashError, ValueError):
    """Raised when index configuration is invalid.

    Examples:
        - hash_modulo < 2
        - max_global_depth < 1
        - bucket_capacity < 1
        - a non-integer value read from the environment
    """

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class InvalidKeyError(ExtHashError, ValueError):
    """Raised for keys outside the hash domain (negative integers)."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Key must be a non-negative integer, got {key!r}")


class CapacityExceeded(ExtHashError):
    """Raised when a key cannot be placed without exceeding max_global_depth.

    Recoverable: rebuild the index with a larger max_global_depth or
    bucket_capacity and insert the key again.
    """

    def __init__(
        self,
        reason: str,
        key: int | None = None,
        bucket_id: int | None = None,
        local_depth: int | None = None,
    ):
        self.reason = reason
        self.key = key
        self.bucket_id = bucket_id
        self.local_depth = local_depth
        super().__init__(reason)


class UnknownBucketError(ExtHashError, KeyError):
    """Raised when a bucket id is not in the bucket table."""

    def __init__(self, bucket_id: int):
        self.bucket_id = bucket_id
        super().__init__(bucket_id)

    def __str__(self) -> str:
        return f"No bucket with id {self.bucket_id}"


class InternalInconsistencyError(ExtHashError, AssertionError):
    """Raised when directory or bucket invariants are violated.

    This always signals a bug in the index; callers should not try to
    recover from it.
    """

    pass
