"""Transactions, their inputs and their outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from btclib.hashing import U64_MAX, Hash, _plain
from btclib.util import Saveable


def _uuid_from_data(data: Any) -> UUID:
    if isinstance(data, (bytes, bytearray)):
        return UUID(bytes=bytes(data))
    if isinstance(data, str):
        return UUID(data)
    raise TypeError(f"cannot read a UUID from {type(data).__name__}")


@dataclass
class TransactionInput:
    """A reference to an earlier output, with the signature that unlocks it.

    The signature is any object offering ``verify(message_hash, pubkey)``.
    """

    pre_transaction_output_hash: Hash
    signature: Any

    def to_data(self) -> dict[str, Any]:
        return {
            "pre_transaction_output_hash": self.pre_transaction_output_hash.to_data(),
            "signature": _plain(self.signature),
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> TransactionInput:
        return cls(
            pre_transaction_output_hash=Hash.from_data(data["pre_transaction_output_hash"]),
            signature=data["signature"],
        )


@dataclass
class TransactionOutput:
    """An amount paid to a public key."""

    value: int
    unique_id: UUID
    pubkey: Any

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or not 0 <= self.value <= U64_MAX:
            raise ValueError(f"output value out of range: {self.value!r}")

    def hash(self) -> Hash:
        return Hash.digest(self)

    def to_data(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "unique_id": self.unique_id.bytes,
            "pubkey": _plain(self.pubkey),
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> TransactionOutput:
        return cls(
            value=data["value"],
            unique_id=_uuid_from_data(data["unique_id"]),
            pubkey=data["pubkey"],
        )


@dataclass
class Transaction(Saveable):
    """A set of spent outputs and the new outputs they fund."""

    inputs: list[TransactionInput] = field(default_factory=list)
    outputs: list[TransactionOutput] = field(default_factory=list)

    def hash(self) -> Hash:
        return Hash.digest(self)

    def to_data(self) -> dict[str, Any]:
        return {
            "inputs": [tx_input.to_data() for tx_input in self.inputs],
            "outputs": [output.to_data() for output in self.outputs],
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> Transaction:
        return cls(
            inputs=[TransactionInput.from_data(item) for item in data["inputs"]],
            outputs=[TransactionOutput.from_data(item) for item in data["outputs"]],
        )