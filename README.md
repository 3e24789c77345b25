# btclib

The building blocks of a small proof-of-work blockchain with unspent
transaction outputs (UTXOs), stored and exchanged as CBOR.

## Modules

- `btclib.hashing` – `Hash`, a 256-bit SHA-256 digest of a value's CBOR
  encoding held as an integer and compared against a mining target with
  `matches_target`. It also holds the chain's constants: `INITIAL_REWARD`,
  `HALVING_INTERVAL`, `IDEAL_BLOCK_TIME`, `MIN_TARGET`,
  `DIFFICULTY_UPDATE_INTERVAL`, `MAX_MEMPOOL_TRANSACTION_AGE` and
  `BLOCK_TRANSACTION_CAP`.
- `btclib.util` – `MerkleRoot.calculate`, which hashes transactions pairwise
  up to one root (an odd last element is paired with itself), and `Saveable`,
  the CBOR `load`/`save`/`load_from_file`/`save_to_file` behaviour shared by
  transactions, blocks and the chain.
- `btclib.transaction` – `TransactionInput`, `TransactionOutput` and
  `Transaction`.
- `btclib.block` – `BlockHeader` (with nonce mining) and `Block` (with
  coinbase, miner fee and input checks).
- `btclib.blockchain` – `Blockchain`: the blocks, the UTXO set, the mempool
  and difficulty retargeting.
- `btclib.network` – `Message` and `MessageKind`: the node protocol, CBOR
  messages framed with an 8-byte big-endian length.
- `btclib.errors` – `BtcError` and its subclasses such as `InvalidBlock`,
  `InvalidTransaction`, `InvalidTransactionInput` and `InvalidMerkleRoot`.
- `btclib.cli` – the command-line tools described below.

## Installation

```
pip install .
```

The only runtime dependency is `cbor2`. To run the tests:

```
pip install ".[test]"
pytest
```

## Using the library

Load a block, mine it for a bounded number of steps and look at its hash:

```python
from btclib.block import Block

block = Block.load_from_file("genesis.cbor")
if block.header.mine(100_000):
    print("found a nonce:", block.header.nonce)
print(block.header.hash())
```

`mine` returns `True` as soon as the header's hash is below its target and
`False` when the steps run out; call it again to keep going. When the nonce
reaches its 64-bit limit it restarts at zero with a fresh timestamp.

Build a chain. The first block only has to follow the zero hash. Every later
block is checked against the previous block's hash, its own target, its
Merkle root, the timestamp order and the UTXO set (coinbase amount, unspent
and unrepeated inputs, signatures, inputs covering outputs). A rejected block
raises a subclass of `BtcError`:

```python
from btclib.blockchain import Blockchain
from btclib.errors import BtcError

chain = Blockchain()
try:
    chain.add_block(block)
except BtcError as exc:
    print("rejected:", exc)
print(chain.block_height())
```

`add_to_mempool` checks a transaction's inputs against the UTXO set, reserves
them, and keeps the mempool sorted by miner fee, lowest first. A transaction
that reuses a reserved output displaces the pending transaction holding it.
Every `DIFFICULTY_UPDATE_INTERVAL` blocks, `try_adjust_target` rescales the
target by how long the last interval took, never above `MIN_TARGET`.
`rebuild_utxos` replays the stored blocks onto the UTXO set. Saving a chain
stores its UTXOs, blocks and target; the mempool is not saved.

Exchange messages with a node over a file-like stream or asyncio streams:

```python
from btclib.network import Message, MessageKind

Message(MessageKind.DISCOVER_NODES).send(stream)
reply = Message.receive(stream)               # blocking, file-like stream
reply = await Message.receive_async(reader)   # asyncio.StreamReader
```

`Message.send(stream)` and `await Message.send_async(writer)` write the
message's CBOR encoding prefixed by its length as eight big-endian bytes.
`Message.receive` raises `EOFError` if the stream ends early, and
`Message.decode` raises `ValueError` for data that is not a valid message.

## Command-line tools

```
btc-mine-block <block-file> <steps>
```

Loads a block, mines its header `<steps>` nonces at a time, printing `mining`
after each round that finds nothing, then prints the original block and its
header hash followed by the mined block and its header hash. `<steps>` must
be a positive integer. The file itself is left unchanged.

```
btc-block-print <block-file>
btc-tx-print <tx-file>
```

Print the block or transaction stored in a CBOR file. A file that cannot be
opened prints nothing; a file that cannot be decoded is reported on standard
error with exit status 1.

## What this package does not do

- It has no key pairs or signature scheme. Public keys and signatures are
  values the caller supplies: a signature is accepted when it has a
  `verify(message_hash, pubkey)` method that returns true, and both are
  stored in CBOR exactly as given.
- It has no tools to generate keys, transactions or blocks; the files the
  command-line tools read must be produced some other way.
- It has no node, no wallet and no mining client: `Message` defines the
  protocol, but nothing here listens on a network or answers requests.