import pytest

from btclib.errors import (
    BtcError,
    InvalidBlock,
    InvalidBlockHeader,
    InvalidHash,
    InvalidMerkleRoot,
    InvalidPrivateKey,
    InvalidPublicKey,
    InvalidSignature,
    InvalidTransaction,
    InvalidTransactionInput,
    InvalidTransactionOutput,
)


@pytest.mark.parametrize(
    ("error_class", "message"),
    [
        (InvalidTransaction, "Invalid transaction"),
        (InvalidBlock, "Invalid block"),
        (InvalidBlockHeader, "Invalid block header"),
        (InvalidTransactionInput, "Invalid transaction input"),
        (InvalidTransactionOutput, "Invalid transaction output"),
        (InvalidMerkleRoot, "Invalid Merkle root"),
        (InvalidHash, "Invalid hash"),
        (InvalidSignature, "Invalid signature"),
        (InvalidPublicKey, "Invalid public key"),
        (InvalidPrivateKey, "Invalid private key"),
    ],
)
def test_default_messages(error_class, message):
    error = error_class()
    assert str(error) == message
    assert isinstance(error, BtcError)


def test_custom_message_overrides_default():
    error = InvalidBlock("prev hash is wrong")
    assert str(error) == "prev hash is wrong"


def test_errors_can_be_caught_as_base_class():
    error = InvalidMerkleRoot()
    with pytest.raises(BtcError) as info:
        raise error
    assert info.value is error
    assert str(info.value) == "Invalid Merkle root"