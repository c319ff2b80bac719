"""hashing.py - Modulo hash and MSB-first binary addressing.

Every address the index uses is a prefix of one fixed-width rendering of the
hash, so ``binary_address(h, d)`` is always the first ``d`` characters of
``binary_address(h, d2)`` for ``d <= d2``. Directory doubling relies on this:
appending a bit to a slot address never changes the routing of shorter
prefixes.
"""

from __future__ import annotations

from .config import IndexConfig
from .utils import assumption


class HashPolicy:
    """Hash function and bit extraction for one index configuration."""

    def __init__(self, hash_modulo: int, max_global_depth: int) -> None:
        assert assumption(hash_modulo, int)
        assert assumption(max_global_depth, int)
        self.hash_modulo = hash_modulo
        self.max_global_depth = max_global_depth
        # ceil(log2(hash_modulo)) without floating point
        self.hash_width: int = (hash_modulo - 1).bit_length()
        "Bits needed to render the largest hash value"
        self.address_width: int = max(self.hash_width, max_global_depth)
        "Width of the zero-padded rendering all addresses are cut from"

    @classmethod
    def from_config(cls, config: IndexConfig) -> HashPolicy:
        return cls(config.hash_modulo, config.max_global_depth)

    def hash(self, key: int) -> int:
        return key % self.hash_modulo

    def binary(self, hash_value: int) -> str:
        """Full-width, zero-padded binary rendering of ``hash_value``."""
        return format(hash_value, f"0{self.address_width}b")

    def binary_address(self, hash_value: int, length: int) -> str:
        """First ``length`` bits of the full-width rendering (MSB first)."""
        self._check_length(length)
        return self.binary(hash_value)[:length]

    def bit(self, hash_value: int, position: int) -> int:
        """Bit at 0-based ``position`` counted from the most significant end."""
        if not 0 <= position < self.address_width:
            raise ValueError(
                f"Bit position {position} outside address width {self.address_width}"
            )
        return (hash_value >> (self.address_width - 1 - position)) & 1

    def slot(self, hash_value: int, depth: int) -> int:
        """Directory slot index: integer value of the ``depth``-bit address."""
        self._check_length(depth)
        return hash_value >> (self.address_width - depth)

    def _check_length(self, length: int) -> None:
        if not 1 <= length <= self.max_global_depth:
            raise ValueError(
                f"Address length {length} outside 1..{self.max_global_depth}"
            )

    def __repr__(self) -> str:
        return (
            f"HashPolicy(hash_modulo={self.hash_modulo}, "
            f"max_global_depth={self.max_global_depth}, "
            f"address_width={self.address_width})"
        )
