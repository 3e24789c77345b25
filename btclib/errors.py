"""Errors raised when blocks, transactions or keys fail validation."""

from __future__ import annotations


class BtcError(Exception):
    """Base class for every validation failure in the chain."""

    default_message = "Blockchain error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidTransaction(BtcError):
    """A transaction is malformed or does not balance."""

    default_message = "Invalid transaction"


class InvalidBlock(BtcError):
    """A block does not fit onto the chain."""

    default_message = "Invalid block"


class InvalidBlockHeader(BtcError):
    """A block header is malformed."""

    default_message = "Invalid block header"


class InvalidTransactionInput(BtcError):
    """A transaction input is unknown, spent twice or badly signed."""

    default_message = "Invalid transaction input"


class InvalidTransactionOutput(BtcError):
    """A transaction output is malformed."""

    default_message = "Invalid transaction output"


class InvalidMerkleRoot(BtcError):
    """A block's Merkle root does not match its transactions."""

    default_message = "Invalid Merkle root"


class InvalidHash(BtcError):
    """A hash is malformed."""

    default_message = "Invalid hash"


class InvalidSignature(BtcError):
    """A signature does not verify."""

    default_message = "Invalid signature"


class InvalidPublicKey(BtcError):
    """A public key is malformed."""

    default_message = "Invalid public key"


class InvalidPrivateKey(BtcError):
    """A private key is malformed."""

    default_message = "Invalid private key"