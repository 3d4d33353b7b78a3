"""Blocks: canonical encoding, hashing, receipts root and sequential execution."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Union

from axiomchain.accounts import compute_state_root
from axiomchain.engine import ExecutionContext, ExecutionEngine
from axiomchain.external_tx import ExternalTransaction
from axiomchain.planning import BASE_FEE
from axiomchain.protocol import ProtocolError, process_external_transaction
from axiomchain.state import StateStore
from axiomchain.types import Epoch, Hash, Slot

__all__ = [
    "Block",
    "Success",
    "Failure",
    "TransactionResult",
    "BlockExecutionResult",
    "encode_block",
    "block_hash",
    "compute_receipts_root",
    "execute_block",
]

_BLOCK_DOMAIN = b"Axiom::Block::v1"
_EXTERNAL_TX_DOMAIN = b"Axiom::ExternalTx::v1"
_RECEIPTS_DOMAIN = b"Axiom::ReceiptsRoot::v1"


def _u64(value: int) -> bytes:
    return struct.pack(">Q", value)


def _u32(value: int) -> bytes:
    return struct.pack(">I", value)


@dataclass(frozen=True)
class Success:
    """The transaction executed and was charged ``fee_charged``."""

    fee_charged: int


@dataclass(frozen=True)
class Failure:
    """The transaction failed and changed no state."""

    error: ProtocolError


TransactionResult = Union[Success, Failure]


@dataclass
class BlockExecutionResult:
    """Per-transaction results, in block order."""

    tx_results: list[TransactionResult] = field(default_factory=list)


@dataclass
class Block:
    """An ordered batch of external transactions with its execution commitments.

    ``state_root`` and ``receipts_root`` describe the state after execution;
    ``parent_hash`` is None for the genesis block.
    """

    parent_hash: Hash | None
    slot: Slot
    epoch: Epoch
    state_root: Hash
    receipts_root: Hash
    transactions: list[ExternalTransaction]

    def hash(self) -> Hash:
        """Return the canonical hash of this block."""
        return block_hash(self)


def _encode_external_transaction(tx: ExternalTransaction) -> bytes:
    cell_ids = sorted(cell.cell_id() for cell in tx.cells)
    parts = [
        _EXTERNAL_TX_DOMAIN,
        bytes(tx.signer),
        _u64(tx.nonce),
        _u32(len(cell_ids)),
        *(bytes(cell_id) for cell_id in cell_ids),
        _u32(len(tx.signature.data)),
        tx.signature.data,
    ]
    return b"".join(parts)


def encode_block(
    parent_hash: Hash | None,
    slot: Slot,
    epoch: Epoch,
    state_root: Hash,
    receipts_root: Hash,
    transactions: Sequence[ExternalTransaction],
) -> bytes:
    """Return the canonical byte encoding of a block."""
    parent = b"\x00" if parent_hash is None else b"\x01" + bytes(parent_hash)
    parts = [
        _BLOCK_DOMAIN,
        parent,
        _u64(slot.value),
        _u64(epoch.value),
        bytes(state_root),
        bytes(receipts_root),
        _u32(len(transactions)),
        *(_encode_external_transaction(tx) for tx in transactions),
    ]
    return b"".join(parts)


def block_hash(block: Block) -> Hash:
    """Return the BLAKE3 hash of the block's canonical encoding."""
    return Hash.digest(
        encode_block(
            block.parent_hash,
            block.slot,
            block.epoch,
            block.state_root,
            block.receipts_root,
            block.transactions,
        )
    )


def compute_receipts_root(
    tx_hashes: Sequence[Hash], results: Sequence[TransactionResult]
) -> Hash:
    """Return the receipts root committing each transaction hash to its result.

    Raises ValueError if the two sequences differ in length.
    """
    if len(tx_hashes) != len(results):
        raise ValueError("tx hashes and results length mismatch")
    parts = [_RECEIPTS_DOMAIN]
    for tx_hash, result in zip(tx_hashes, results):
        parts.append(bytes(tx_hash))
        if isinstance(result, Success):
            parts.append(b"\x01" + _u64(result.fee_charged))
        else:
            parts.append(b"\x00" + _u64(0))
    return Hash.digest(b"".join(parts))


def execute_block(state: StateStore, block: Block, engine: ExecutionEngine) -> BlockExecutionResult:
    """Execute the block's transactions in order against ``state``.

    Each transaction is atomic: a failed one leaves the state untouched.
    Afterwards the block's state root and receipts root are set.
    """
    context = ExecutionContext(slot=block.slot, epoch=block.epoch)
    tx_results: list[TransactionResult] = []
    tx_hashes: list[Hash] = []

    for tx in block.transactions:
        tx_hashes.append(tx.signing_hash())
        try:
            process_external_transaction(state, tx, engine, context)
        except ProtocolError as err:
            tx_results.append(Failure(error=err))
        else:
            tx_results.append(Success(fee_charged=BASE_FEE))

    block.state_root = compute_state_root(state)
    block.receipts_root = compute_receipts_root(tx_hashes, tx_results)
    return BlockExecutionResult(tx_results=tx_results)