"""config.py - Validated, immutable index configuration."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass

import numpy as np

from .constants import (
    DEFAULT_BUCKET_CAPACITY,
    DEFAULT_HASH_MODULO,
    DEFAULT_MAX_GLOBAL_DEPTH,
    ENV_BUCKET_CAPACITY,
    ENV_HASH_MODULO,
    ENV_MAX_GLOBAL_DEPTH,
    MIN_BUCKET_CAPACITY,
    MIN_GLOBAL_DEPTH,
    MIN_HASH_MODULO,
)
from .exceptions import ConfigurationError


def _check_int(field: str, value, minimum: int) -> None:
    # bool is an int subclass but never a meaningful size
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(field, value, "must be an integer")
    if value < minimum:
        raise ConfigurationError(field, value, f"must be >= {minimum}")


@dataclass(frozen=True)
class IndexConfig:
    """Configuration of one extendible hash index.

    All three values are fixed for the life of an index state; changing any
    of them means building a fresh index (see ExtendibleHashIndex.configure).
    """

    hash_modulo: int = DEFAULT_HASH_MODULO
    max_global_depth: int = DEFAULT_MAX_GLOBAL_DEPTH
    bucket_capacity: int = DEFAULT_BUCKET_CAPACITY

    def __post_init__(self) -> None:
        self.validate()
        # numpy integers are accepted but stored as plain int
        for field in dataclasses.fields(self):
            object.__setattr__(self, field.name, int(getattr(self, field.name)))

    def validate(self) -> IndexConfig:
        _check_int("hash_modulo", self.hash_modulo, MIN_HASH_MODULO)
        _check_int("max_global_depth", self.max_global_depth, MIN_GLOBAL_DEPTH)
        _check_int("bucket_capacity", self.bucket_capacity, MIN_BUCKET_CAPACITY)
        return self

    def replace(self, **changes) -> IndexConfig:
        """Return a validated copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ=None) -> IndexConfig:
        """Build a config from EXTHASH_* variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for field, var in (
            ("hash_modulo", ENV_HASH_MODULO),
            ("max_global_depth", ENV_MAX_GLOBAL_DEPTH),
            ("bucket_capacity", ENV_BUCKET_CAPACITY),
        ):
            raw = environ.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field] = int(raw)
            except ValueError as e:
                raise ConfigurationError(field, raw, f"{var} is not an integer") from e
        return cls(**values)

    def to_dict(self) -> dict[str, int]:
        return {
            "hash_modulo": self.hash_modulo,
            "max_global_depth": self.max_global_depth,
            "bucket_capacity": self.bucket_capacity,
        }
