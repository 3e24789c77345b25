"""Command-line tools for mining blocks and printing stored blocks and transactions."""

from __future__ import annotations

import copy
import re
import sys
from pprint import pformat
from typing import Sequence

from btclib.block import Block
from btclib.hashing import U64_MAX
from btclib.transaction import Transaction

_STEPS = re.compile(r"\+?[0-9]+")


def _args(argv: Sequence[str] | None) -> list[str]:
    return list(sys.argv[1:] if argv is None else argv)


def _parse_steps(text: str) -> int | None:
    """Parse a step count: a whole number from 1 up to, not including, 2**64 - 1."""
    if not _STEPS.fullmatch(text):
        return None
    steps = int(text)
    if 1 <= steps < U64_MAX:
        return steps
    return None


def mine_block_main(argv: Sequence[str] | None = None) -> int:
    """Mine the block stored in a file, ``steps`` nonces at a time, and print it."""
    args = _args(argv)
    if len(args) < 2:
        print("Usage: miner <block-file> <steps>", file=sys.stderr)
        return 1
    path, steps_text = args[0], args[1]
    steps = _parse_steps(steps_text)
    if steps is None:
        print("<steps> should be a positive integer", file=sys.stderr)
        return 1

    try:
        original = Block.load_from_file(path)
    except (OSError, ValueError) as exc:
        print(f"failed to load block: {exc}", file=sys.stderr)
        return 1

    block = copy.deepcopy(original)
    while not block.header.mine(steps):
        print("mining")
    print(f"original: {pformat(original)}")
    print(f"hash: {original.header.hash()}")
    print(f"final: {pformat(block)}")
    print(f"hash: {block.header.hash()}")
    return 0


def block_print_main(argv: Sequence[str] | None = None) -> int:
    """Print the block stored in a file; print nothing if the file cannot be opened."""
    args = _args(argv)
    if not args:
        print("Usage: block_print <block_file>", file=sys.stderr)
        return 1
    try:
        file = open(args[0], "rb")
    except OSError:
        return 0
    with file:
        try:
            block = Block.load(file)
        except ValueError as exc:
            print(f"Failed to load block: {exc}", file=sys.stderr)
            return 1
    print(pformat(block))
    return 0


def tx_print_main(argv: Sequence[str] | None = None) -> int:
    """Print the transaction stored in a file; print nothing if the file cannot be opened."""
    args = _args(argv)
    if not args:
        print("Usage: tx_print <tx_file>", file=sys.stderr)
        return 1
    try:
        file = open(args[0], "rb")
    except OSError:
        return 0
    with file:
        try:
            transaction = Transaction.load(file)
        except ValueError as exc:
            print(f"Failed to load transaction: {exc}", file=sys.stderr)
            return 1
    print(pformat(transaction))
    return 0