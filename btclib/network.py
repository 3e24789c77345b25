"""Messages exchanged between nodes, framed with a length prefix over CBOR."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO, Callable

import cbor2

from btclib.block import Block
from btclib.hashing import U64_MAX, _plain
from btclib.transaction import Transaction, TransactionOutput

_LENGTH_SIZE = 8


class MessageKind(Enum):
    """Every kind of message, named as it appears on the wire."""

    FETCH_UTXOS = "FetchUTXOs"
    UTXOS = "UTXOs"
    SUBMIT_TRANSACTION = "SubmitTransaction"
    NEW_TRANSACTION = "NewTransaction"
    FETCH_TEMPLATE = "FetchTemplate"
    TEMPLATE = "Template"
    VALIDATE_TEMPLATE = "ValidateTemplate"
    TEMPLATE_VALIDITY = "TemplateValidity"
    SUBMIT_TEMPLATE = "SubmitTemplate"
    DISCOVER_NODES = "DiscoverNodes"
    NODE_LIST = "NodeList"
    ASK_DIFFERENCE = "AskDifference"
    DIFFERENCE = "Difference"
    FETCH_BLOCK = "FetchBlock"
    NEW_BLOCK = "NewBlock"


_Codec = tuple[Callable[[Any], Any], Callable[[Any], Any]]


def _check_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {type(value).__name__}")
    return value


def _int_codec(low: int, high: int) -> _Codec:
    def check(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected an integer, got {type(value).__name__}")
        if not low <= value <= high:
            raise ValueError(f"integer out of range [{low}, {high}]: {value}")
        return value

    return check, check


def _model_codec(model: Any) -> _Codec:
    def to_data(value: Any) -> Any:
        if not isinstance(value, model):
            raise TypeError(f"expected {model.__name__}, got {type(value).__name__}")
        return value.to_data()

    return to_data, model.from_data


def _utxos_to_data(value: Any) -> list[list[Any]]:
    return [
        [_model_codec(TransactionOutput)[0](output), _check_bool(marked)]
        for output, marked in value
    ]


def _utxos_from_data(data: Any) -> list[tuple[TransactionOutput, bool]]:
    return [
        (TransactionOutput.from_data(output), _check_bool(marked)) for output, marked in data
    ]


def _node_list(value: Any) -> list[str]:
    nodes = list(value)
    if not all(isinstance(node, str) for node in nodes):
        raise TypeError("node addresses must be strings")
    return nodes


_OPAQUE: _Codec = (_plain, lambda data: data)
_BOOL: _Codec = (_check_bool, _check_bool)

_CODECS: dict[MessageKind, _Codec | None] = {
    MessageKind.FETCH_UTXOS: _OPAQUE,
    MessageKind.UTXOS: (_utxos_to_data, _utxos_from_data),
    MessageKind.SUBMIT_TRANSACTION: _model_codec(Transaction),
    MessageKind.NEW_TRANSACTION: _model_codec(Transaction),
    MessageKind.FETCH_TEMPLATE: _OPAQUE,
    MessageKind.TEMPLATE: _model_codec(Block),
    MessageKind.VALIDATE_TEMPLATE: _model_codec(Block),
    MessageKind.TEMPLATE_VALIDITY: _BOOL,
    MessageKind.SUBMIT_TEMPLATE: _model_codec(Block),
    MessageKind.DISCOVER_NODES: None,
    MessageKind.NODE_LIST: (_node_list, _node_list),
    MessageKind.ASK_DIFFERENCE: _int_codec(0, (1 << 32) - 1),
    MessageKind.DIFFERENCE: _int_codec(-(1 << 31), (1 << 31) - 1),
    MessageKind.FETCH_BLOCK: _int_codec(0, U64_MAX),
    MessageKind.NEW_BLOCK: _model_codec(Block),
}


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < size:
        chunk = stream.read(size - len(chunks))
        if not chunk:
            raise EOFError(f"stream ended after {len(chunks)} of {size} bytes")
        chunks += chunk
    return bytes(chunks)


@dataclass(frozen=True)
class Message:
    """One message: its kind and, for every kind but DISCOVER_NODES, a payload.

    Public keys are carried as opaque values.
    """

    kind: MessageKind
    payload: Any = None

    def __post_init__(self) -> None:
        codec = _CODECS[self.kind]
        if codec is None:
            if self.payload is not None:
                raise ValueError(f"{self.kind.value} carries no payload")
        elif self.payload is None:
            raise ValueError(f"{self.kind.value} needs a payload")
        else:
            codec[0](self.payload)

    def _to_plain(self) -> Any:
        codec = _CODECS[self.kind]
        if codec is None:
            return self.kind.value
        return {self.kind.value: codec[0](self.payload)}

    @classmethod
    def _from_plain(cls, data: Any) -> Message:
        if isinstance(data, str):
            kind, payload = MessageKind(data), None
        elif isinstance(data, dict) and len(data) == 1:
            ((name, raw),) = data.items()
            kind = MessageKind(name)
            codec = _CODECS[kind]
            if codec is None:
                raise ValueError(f"{kind.value} carries no payload")
            payload = codec[1](raw)
        else:
            raise ValueError("malformed message")
        return cls(kind, payload)

    def encode(self) -> bytes:
        """The CBOR encoding of the message, without framing."""
        return cbor2.dumps(self._to_plain())

    @classmethod
    def decode(cls, data: bytes) -> Message:
        """Read a message from its unframed CBOR encoding."""
        try:
            return cls._from_plain(cbor2.loads(data))
        except (cbor2.CBORDecodeError, KeyError, TypeError, ValueError, IndexError) as exc:
            raise ValueError("Failed to decode message") from exc

    def _framed(self) -> bytes:
        body = self.encode()
        return len(body).to_bytes(_LENGTH_SIZE, "big") + body

    def send(self, stream: BinaryIO) -> None:
        """Write the message behind an 8-byte big-endian length."""
        stream.write(self._framed())

    async def send_async(self, writer: asyncio.StreamWriter) -> None:
        writer.write(self._framed())
        await writer.drain()

    @classmethod
    def receive(cls, stream: BinaryIO) -> Message:
        """Read one length-prefixed message; EOFError if the stream runs short."""
        length = int.from_bytes(_read_exact(stream, _LENGTH_SIZE), "big")
        return cls.decode(_read_exact(stream, length))

    @classmethod
    async def receive_async(cls, reader: asyncio.StreamReader) -> Message:
        length = int.from_bytes(await reader.readexactly(_LENGTH_SIZE), "big")
        return cls.decode(await reader.readexactly(length))