"""Hashes, transactions, blocks, chain state and a CBOR node protocol for a small proof-of-work blockchain."""

__version__ = "0.1.0"