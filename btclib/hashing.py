"""Content hashes over CBOR encodings, and the chain's constants."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Iterable

import cbor2

# Initial reward in coins; multiply by 10**8 for the smallest unit.
INITIAL_REWARD = 50
# Halving interval in blocks.
HALVING_INTERVAL = 210
# Ideal block time in seconds.
IDEAL_BLOCK_TIME = 10
# Easiest allowed target: the top sixteen bits are clear.
MIN_TARGET = (1 << 240) - 1
# Difficulty update interval in blocks.
DIFFICULTY_UPDATE_INTERVAL = 50
# Maximum mempool transaction age in seconds.
MAX_MEMPOOL_TRANSACTION_AGE = 600
# Maximum number of transactions allowed in a block.
BLOCK_TRANSACTION_CAP = 20

U64_MAX = (1 << 64) - 1
U256_MAX = (1 << 256) - 1


def _u256_to_data(value: int) -> list[int]:
    """Split a 256-bit integer into four 64-bit words, least significant first."""
    if not 0 <= value <= U256_MAX:
        raise ValueError(f"value out of 256-bit range: {value}")
    return [(value >> (64 * shift)) & U64_MAX for shift in range(4)]


def _u256_from_data(data: Iterable[int]) -> int:
    """Join four 64-bit words, least significant first, into one integer."""
    words = list(data)
    if len(words) != 4:
        raise ValueError(f"expected 4 words, got {len(words)}")
    value = 0
    for shift, word in enumerate(words):
        if not isinstance(word, int) or not 0 <= word <= U64_MAX:
            raise ValueError(f"word out of 64-bit range: {word!r}")
        value |= word << (64 * shift)
    return value


def _plain(obj: Any) -> Any:
    """Turn an object into plain data ready for CBOR encoding."""
    to_data = getattr(obj, "to_data", None)
    if callable(to_data):
        return to_data()
    if isinstance(obj, (list, tuple)):
        return [_plain(item) for item in obj]
    if isinstance(obj, dict):
        return {key: _plain(value) for key, value in obj.items()}
    return obj


@dataclass(frozen=True, order=True)
class Hash:
    """A 256-bit SHA-256 digest held as an integer."""

    value: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.value <= U256_MAX:
            raise ValueError(f"hash out of 256-bit range: {self.value}")

    @classmethod
    def digest(cls, data: Any) -> Hash:
        """Hash the CBOR encoding of ``data``."""
        try:
            encoded = cbor2.dumps(_plain(data))
        except cbor2.CBOREncodeError as exc:
            raise TypeError(f"cannot encode {type(data).__name__} for hashing") from exc
        return cls(int.from_bytes(hashlib.sha256(encoded).digest(), "big"))

    @classmethod
    def zero(cls) -> Hash:
        return cls(0)

    def as_bytes(self) -> bytes:
        """The hash as 32 little-endian bytes."""
        return self.value.to_bytes(32, "little")

    def matches_target(self, target: int) -> bool:
        """True when the hash is strictly below ``target``."""
        return self.value < target

    def to_data(self) -> list[int]:
        return _u256_to_data(self.value)

    @classmethod
    def from_data(cls, data: Iterable[int]) -> Hash:
        return cls(_u256_from_data(data))

    def __str__(self) -> str:
        return format(self.value, "x")