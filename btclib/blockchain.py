"""The chain of blocks, its unspent outputs and the mempool."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from typing import Any

from btclib.block import Block
from btclib.errors import InvalidBlock, InvalidMerkleRoot, InvalidTransaction
from btclib.hashing import (
    DIFFICULTY_UPDATE_INTERVAL,
    IDEAL_BLOCK_TIME,
    MIN_TARGET,
    Hash,
    _u256_from_data,
    _u256_to_data,
)
from btclib.transaction import Transaction, TransactionOutput
from btclib.util import MerkleRoot, Saveable

log = logging.getLogger(__name__)


def _nanoseconds(span: timedelta) -> int:
    return (span.days * 86_400 + span.seconds) * 10**9 + span.microseconds * 1_000


@dataclass
class Blockchain(Saveable):
    """Blocks in order, the unspent outputs they leave, and pending transactions.

    Each unspent output carries a flag that is set while a mempool
    transaction has reserved it. The mempool is never persisted.
    """

    utxos: dict[Hash, tuple[bool, TransactionOutput]] = field(default_factory=dict)
    blocks: list[Block] = field(default_factory=list)
    target: int = MIN_TARGET
    mempool: list[tuple[datetime, Transaction]] = field(default_factory=list)

    def block_height(self) -> int:
        return len(self.blocks)

    def rebuild_utxos(self) -> None:
        """Replay every block onto the unspent output set.

        Outputs are keyed by the hash of the transaction that made them,
        so a transaction with several outputs leaves only its last one.
        """
        for block in self.blocks:
            for transaction in block.transactions:
                for tx_input in transaction.inputs:
                    self.utxos.pop(tx_input.pre_transaction_output_hash, None)
                for output in transaction.outputs:
                    self.utxos[transaction.hash()] = (False, output)

    def add_block(self, block: Block) -> None:
        """Validate ``block`` against the chain tip and append it."""
        if not self.blocks:
            if block.header.prev_block_hash != Hash.zero():
                raise InvalidBlock("first block must follow the zero hash")
        else:
            last_block = self.blocks[-1]
            if block.header.prev_block_hash != last_block.hash():
                raise InvalidBlock("previous block hash does not match the chain tip")
            if not block.header.hash().matches_target(block.header.target):
                raise InvalidBlock("block hash does not meet its target")
            if MerkleRoot.calculate(block.transactions) != block.header.merkle_root:
                raise InvalidMerkleRoot()
            if block.header.timestamp <= last_block.header.timestamp:
                raise InvalidBlock("block is not newer than the chain tip")
            block.verify_transactions(self.block_height(), self.utxos)

        included = {transaction.hash() for transaction in block.transactions}
        self.mempool = [
            entry for entry in self.mempool if entry[1].hash() not in included
        ]

        self.try_adjust_target()
        self.blocks.append(block)

    def _set_mark(self, key: Hash, marked: bool) -> None:
        entry = self.utxos.get(key)
        if entry is not None:
            self.utxos[key] = (marked, entry[1])

    def _miner_fee(self, transaction: Transaction) -> int:
        inputs = sum(
            self.utxos[tx_input.pre_transaction_output_hash][1].value
            for tx_input in transaction.inputs
        )
        return inputs - sum(output.value for output in transaction.outputs)

    def add_to_mempool(self, transaction: Transaction) -> None:
        """Validate ``transaction``, reserve its inputs and queue it by fee."""
        known_inputs: set[Hash] = set()
        for tx_input in transaction.inputs:
            key = tx_input.pre_transaction_output_hash
            if key not in self.utxos or key in known_inputs:
                raise InvalidTransaction()
            known_inputs.add(key)

        for tx_input in transaction.inputs:
            key = tx_input.pre_transaction_output_hash
            entry = self.utxos.get(key)
            if entry is None or not entry[0]:
                continue
            index = next(
                (
                    position
                    for position, (_, pending) in enumerate(self.mempool)
                    if any(output.hash() == key for output in pending.outputs)
                ),
                None,
            )
            if index is None:
                self._set_mark(key, False)
            else:
                _, referencing = self.mempool.pop(index)
                for ref_input in referencing.inputs:
                    self._set_mark(ref_input.pre_transaction_output_hash, False)

        if self._miner_fee(transaction) < 0:
            raise InvalidTransaction()

        for tx_input in transaction.inputs:
            self._set_mark(tx_input.pre_transaction_output_hash, True)

        self.mempool.append((datetime.now(timezone.utc), transaction))
        self.mempool.sort(key=lambda entry: self._miner_fee(entry[1]))

    def try_adjust_target(self) -> None:
        """Rescale the target every DIFFICULTY_UPDATE_INTERVAL blocks.

        The new target is the old one scaled by the time the last interval
        took, and never exceeds MIN_TARGET.
        """
        height = self.block_height()
        if height == 0 or height % DIFFICULTY_UPDATE_INTERVAL != 0:
            return
        start_time = self.blocks[height - DIFFICULTY_UPDATE_INTERVAL].header.timestamp
        end_time = self.blocks[-1].header.timestamp
        elapsed = _nanoseconds(end_time - start_time)
        target_seconds = DIFFICULTY_UPDATE_INTERVAL * IDEAL_BLOCK_TIME
        new_target = int(Fraction(self.target * elapsed, target_seconds))
        if new_target < 0:
            raise ValueError("block timestamps run backwards")
        log.debug("recomputed target: %x", new_target)
        self.target = min(new_target, MIN_TARGET)
        log.debug("target now: %x", self.target)

    def to_data(self) -> dict[str, Any]:
        return {
            "utxos": [
                [key.to_data(), [marked, output.to_data()]]
                for key, (marked, output) in self.utxos.items()
            ],
            "blocks": [block.to_data() for block in self.blocks],
            "target": _u256_to_data(self.target),
        }

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> Blockchain:
        utxos: dict[Hash, tuple[bool, TransactionOutput]] = {}
        for key_data, (marked, output_data) in data["utxos"]:
            if not isinstance(marked, bool):
                raise ValueError("utxo mark must be a boolean")
            utxos[Hash.from_data(key_data)] = (marked, TransactionOutput.from_data(output_data))
        return cls(
            utxos=utxos,
            blocks=[Block.from_data(item) for item in data["blocks"]],
            target=_u256_from_data(data["target"]),
        )