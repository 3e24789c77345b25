import io
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from btclib.block import Block, BlockHeader
from btclib.errors import InvalidTransaction, InvalidTransactionInput
from btclib.hashing import HALVING_INTERVAL, INITIAL_REWARD, MIN_TARGET, U64_MAX, U256_MAX, Hash
from btclib.transaction import Transaction, TransactionInput, TransactionOutput
from btclib.util import MerkleRoot

ALICE_PUBKEY = b"alice-public-key"
BOB_PUBKEY = b"bob-public-key"
MINER_PUBKEY = b"miner-public-key"
REWARD = INITIAL_REWARD * 10**8


@dataclass
class StubSignature:
    signer: bytes

    def verify(self, message, pubkey):
        return pubkey == self.signer


def output(value, pubkey=ALICE_PUBKEY):
    return TransactionOutput(value=value, unique_id=uuid4(), pubkey=pubkey)


def spend(prev, value, signer=ALICE_PUBKEY, pubkey=BOB_PUBKEY):
    return Transaction(
        [TransactionInput(prev.hash(), StubSignature(signer))],
        [output(value, pubkey)],
    )


def coinbase(value):
    return Transaction([], [output(value, MINER_PUBKEY)])


def header(nonce=0, target=MIN_TARGET, timestamp=None):
    return BlockHeader(
        timestamp=timestamp or datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        nonce=nonce,
        prev_block_hash=Hash.zero(),
        merkle_root=MerkleRoot(Hash.zero()),
        target=target,
    )


def utxo_set(*outputs):
    return {item.hash(): (False, item) for item in outputs}


def test_timestamp_serialization_format():
    assert header().to_data()["timestamp"] == "2024-01-02T03:04:05Z"


def test_header_round_trip_with_fraction():
    original = header(
        nonce=42,
        timestamp=datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc),
    )
    assert BlockHeader.from_data(original.to_data()) == original


def test_naive_timestamp_rejected():
    with pytest.raises(ValueError):
        header(timestamp=datetime(2024, 1, 1))


def test_mine_already_valid_keeps_nonce():
    mined = header(nonce=3, target=U256_MAX)
    assert mined.mine(10) is True
    assert mined.nonce == 3


def test_mine_impossible_target_exhausts_steps():
    mined = header(nonce=0, target=0)
    before = mined.hash()
    assert mined.mine(5) is False
    assert mined.nonce == 5
    assert mined.hash() != before


def test_mine_nonce_wraps_and_refreshes_timestamp():
    old = datetime(2000, 1, 1, tzinfo=timezone.utc)
    mined = header(nonce=U64_MAX, target=0, timestamp=old)
    assert mined.mine(1) is False
    assert mined.nonce == 0
    assert mined.timestamp > old


def test_block_save_load_round_trip(tmp_path):
    block = Block(header(), [coinbase(REWARD)])
    buffer = io.BytesIO()
    block.save(buffer)
    buffer.seek(0)
    loaded = Block.load(buffer)
    assert loaded == block
    assert loaded.hash() == block.hash()

    path = tmp_path / "block.cbor"
    block.save_to_file(path)
    assert Block.load_from_file(path).hash() == block.hash()


def test_block_hash_changes_with_nonce():
    assert Block(header(nonce=1), []).hash() != Block(header(nonce=2), []).hash()


def test_valid_block_fee_and_verification():
    prev = output(1000)
    payment = spend(prev, 900)
    utxos = utxo_set(prev)
    block = Block(header(), [coinbase(REWARD + 100), payment])
    assert block.calculate_miner_fee(utxos) == 100
    block.verify_transactions(0, utxos)

    overpaid = Block(header(), [coinbase(REWARD + 101), payment])
    with pytest.raises(InvalidTransaction):
        overpaid.verify_transactions(0, utxos)


def test_reward_halves_after_interval():
    halved = Block(header(), [coinbase(REWARD // 2)])
    halved.verify_coinbase_transaction(HALVING_INTERVAL, {})
    with pytest.raises(InvalidTransaction):
        halved.verify_coinbase_transaction(HALVING_INTERVAL - 1, {})


def test_empty_block_rejected():
    with pytest.raises(InvalidTransaction):
        Block(header(), []).verify_transactions(0, {})


def test_coinbase_with_inputs_rejected():
    prev = output(1000)
    bad_coinbase = Transaction(
        [TransactionInput(prev.hash(), StubSignature(ALICE_PUBKEY))],
        [output(REWARD, MINER_PUBKEY)],
    )
    with pytest.raises(InvalidTransaction):
        Block(header(), [bad_coinbase]).verify_coinbase_transaction(0, utxo_set(prev))


def test_coinbase_without_outputs_rejected():
    with pytest.raises(InvalidTransaction):
        Block(header(), [Transaction([], [])]).verify_coinbase_transaction(0, {})


def test_unknown_input_rejected():
    prev = output(1000)
    block = Block(header(), [coinbase(REWARD), spend(prev, 900)])
    with pytest.raises(InvalidTransaction):
        block.calculate_miner_fee({})


def test_double_spend_across_transactions_rejected():
    prev = output(1000)
    block = Block(header(), [coinbase(REWARD), spend(prev, 400), spend(prev, 400)])
    with pytest.raises(InvalidTransaction):
        block.verify_transactions(0, utxo_set(prev))


def test_bad_signature_rejected():
    prev = output(1000)
    forged = spend(prev, 900, signer=BOB_PUBKEY)
    block = Block(header(), [coinbase(REWARD + 100), forged])
    with pytest.raises(InvalidTransactionInput):
        block.verify_transactions(0, utxo_set(prev))


def test_signature_without_verify_rejected():
    prev = output(1000)
    unsigned = Transaction([TransactionInput(prev.hash(), b"raw")], [output(900, BOB_PUBKEY)])
    block = Block(header(), [coinbase(REWARD + 100), unsigned])
    with pytest.raises(InvalidTransactionInput):
        block.verify_transactions(0, utxo_set(prev))


def test_single_transaction_overspending_rejected():
    big = output(1000)
    small = output(100)
    block = Block(
        header(),
        [coinbase(REWARD + 400), spend(big, 500), spend(small, 200)],
    )
    utxos = utxo_set(big, small)
    assert block.calculate_miner_fee(utxos) == 400
    with pytest.raises(InvalidTransactionInput):
        block.verify_transactions(0, utxos)


def test_negative_total_fee_rejected():
    prev = output(100)
    block = Block(header(), [coinbase(REWARD), spend(prev, 200)])
    with pytest.raises(InvalidTransaction):
        block.calculate_miner_fee(utxo_set(prev))