"""Blocks, block headers, mining and transaction verification."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from btclib.errors import InvalidTransaction, InvalidTransactionInput
from btclib.hashing import (
    HALVING_INTERVAL,
    INITIAL_REWARD,
    U64_MAX,
    U256_MAX,
    Hash,
    _u256_from_data,
    _u256_to_data,
)
from btclib.transaction import Transaction, TransactionOutput
from btclib.util import MerkleRoot, Saveable

Utxos = Mapping[Hash, "tuple[bool, TransactionOutput]"]

_TIMESTAMP = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


def _format_timestamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    micros = moment.microsecond
    if micros:
        text += f".{micros // 1000:03d}" if micros % 1000 == 0 else f".{micros:06d}"
    return text + "Z"


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP.match(text)
    if match is None:
        raise ValueError(f"malformed timestamp: {text!r}")
    main, fraction, offset = match.groups()
    moment = datetime.fromisoformat(main + ("+00:00" if offset == "Z" else offset))
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    return moment.replace(microsecond=micros).astimezone(timezone.utc)


def _signature_valid(signature: Any, message: Hash, pubkey: Any) -> bool:
    verify = getattr(signature, "verify", None)
    return callable(verify) and bool(verify(message, pubkey))


@dataclass
class BlockHeader:
    """The mined part of a block."""

    timestamp: datetime
    nonce: int
    prev_block_hash: Hash
    merkle_root: MerkleRoot
    target: int

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            raise ValueError("block timestamp must carry a time zone")
        if not 0 <= self.nonce <= U64_MAX:
            raise ValueError(f"nonce out of range: {self.nonce}")
        if not 0 <= self.target <= U256_MAX:
            raise ValueError(f"target out of range: {self.target}")

    def mine(self, steps: int) -> bool:
        """Try up to ``steps`` nonces; True once the hash is below the target.

        When the nonce wraps around it restarts at zero with a fresh timestamp.
        """
        if self.hash().matches_target(self.target):
            return True
        for _ in range(steps):
            if self.nonce < U64_MAX:
                self.nonce += 1
            else:
                self.nonce = 0
                self.timestamp = datetime.now(timezone.utc)
            if self.hash().matches_target(self.target):
                return True
        return False

    def hash(self) -> Hash:
        return Hash.digest(self)

    def to_data(self) -> dict[str, Any]:
        return {
            "timestamp": _format_timestamp(self.timestamp),
            "nonce": self.nonce,
            "prev_block_hash": self.prev_block_hash.to_data(),
            "merkle_root": self.merkle_root.to_data(),
            "target": _u256_to_data(self.target),
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> BlockHeader:
        return cls(
            timestamp=_parse_timestamp(data["timestamp"]),
            nonce=data["nonce"],
            prev_block_hash=Hash.from_data(data["prev_block_hash"]),
            merkle_root=MerkleRoot.from_data(data["merkle_root"]),
            target=_u256_from_data(data["target"]),
        )


@dataclass
class Block(Saveable):
    """A header and the transactions it commits to; the first is the coinbase."""

    header: BlockHeader
    transactions: list[Transaction] = field(default_factory=list)

    def hash(self) -> Hash:
        return Hash.digest(self)

    def calculate_miner_fee(self, utxos: Utxos) -> int:
        """Total inputs minus total outputs of every non-coinbase transaction."""
        inputs: dict[Hash, TransactionOutput] = {}
        outputs: dict[Hash, TransactionOutput] = {}
        for transaction in self.transactions[1:]:
            for tx_input in transaction.inputs:
                key = tx_input.pre_transaction_output_hash
                entry = utxos.get(key)
                if entry is None or key in inputs:
                    raise InvalidTransaction()
                inputs[key] = entry[1]
            for output in transaction.outputs:
                key = output.hash()
                if key in outputs:
                    raise InvalidTransaction()
                outputs[key] = output
        fee = sum(output.value for output in inputs.values()) - sum(
            output.value for output in outputs.values()
        )
        if fee < 0:
            raise InvalidTransaction()
        return fee

    def verify_coinbase_transaction(self, predicted_block_height: int, utxos: Utxos) -> None:
        """Check the coinbase pays exactly the block reward plus fees."""
        if not self.transactions:
            raise InvalidTransaction()
        coinbase = self.transactions[0]
        if coinbase.inputs or not coinbase.outputs:
            raise InvalidTransaction()
        miner_fee = self.calculate_miner_fee(utxos)
        block_reward = INITIAL_REWARD * 10**8 // 2 ** (predicted_block_height // HALVING_INTERVAL)
        if sum(output.value for output in coinbase.outputs) != block_reward + miner_fee:
            raise InvalidTransaction()

    def verify_transactions(self, block_height: int, utxos: Utxos) -> None:
        """Check every input is unspent, spent once, signed, and covers its outputs."""
        if not self.transactions:
            raise InvalidTransaction()
        self.verify_coinbase_transaction(block_height, utxos)

        seen_inputs: set[Hash] = set()
        for transaction in self.transactions[1:]:
            input_value = 0
            for tx_input in transaction.inputs:
                key = tx_input.pre_transaction_output_hash
                entry = utxos.get(key)
                if entry is None:
                    raise InvalidTransaction()
                prev_output = entry[1]
                if key in seen_inputs:
                    raise InvalidTransactionInput()
                if not _signature_valid(tx_input.signature, key, prev_output.pubkey):
                    raise InvalidTransactionInput()
                input_value += prev_output.value
                seen_inputs.add(key)
            output_value = sum(output.value for output in transaction.outputs)
            if input_value < output_value:
                raise InvalidTransactionInput()

    def to_data(self) -> dict[str, Any]:
        return {
            "header": self.header.to_data(),
            "transactions": [transaction.to_data() for transaction in self.transactions],
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> Block:
        return cls(
            header=BlockHeader.from_data(data["header"]),
            transactions=[Transaction.from_data(item) for item in data["transactions"]],
        )