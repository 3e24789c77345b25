"""Merkle roots and CBOR persistence."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from itertools import zip_longest
from typing import Any, BinaryIO, Iterable, TypeVar

import cbor2

from btclib.hashing import Hash

_S = TypeVar("_S", bound="Saveable")


@dataclass(frozen=True)
class MerkleRoot:
    """The root of the Merkle tree over a block's transactions."""

    root: Hash

    @classmethod
    def calculate(cls, transactions: Iterable[Any]) -> MerkleRoot:
        """Hash the transactions pairwise up to a single root.

        An odd element at the end of a layer is paired with itself.
        """
        layer = [Hash.digest(transaction) for transaction in transactions]
        if not layer:
            raise ValueError("cannot compute a Merkle root of no transactions")
        while len(layer) > 1:
            pairs = iter(layer)
            layer = [
                Hash.digest([left, left if right is None else right])
                for left, right in zip_longest(pairs, pairs)
            ]
        return cls(layer[0])

    def to_data(self) -> list[int]:
        return self.root.to_data()

    @classmethod
    def from_data(cls, data: Iterable[int]) -> MerkleRoot:
        return cls(Hash.from_data(data))


class Saveable(ABC):
    """Mixin for objects stored as a single CBOR document."""

    @abstractmethod
    def to_data(self) -> Any:
        """Plain data describing the object."""

    @classmethod
    @abstractmethod
    def from_data(cls: type[_S], data: Any) -> _S:
        """Build the object from plain data."""

    @classmethod
    def load(cls: type[_S], reader: BinaryIO) -> _S:
        try:
            return cls.from_data(cbor2.load(reader))
        except (cbor2.CBORDecodeError, KeyError, TypeError, ValueError, IndexError) as exc:
            raise ValueError(f"Failed to deserialize {cls.__name__}") from exc

    def save(self, writer: BinaryIO) -> None:
        try:
            cbor2.dump(self.to_data(), writer)
        except (cbor2.CBOREncodeError, TypeError, ValueError) as exc:
            raise ValueError(f"Failed to serialize {type(self).__name__}") from exc

    def save_to_file(self, path: str | os.PathLike[str]) -> None:
        with open(path, "wb") as file:
            self.save(file)

    @classmethod
    def load_from_file(cls: type[_S], path: str | os.PathLike[str]) -> _S:
        with open(path, "rb") as file:
            return cls.load(file)