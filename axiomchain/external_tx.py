"""User-submitted external transactions and their authorization step."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass, field

from axiomchain.accounts import validate_and_prepare_nonce_update
from axiomchain.state import StateObject, StateStore, Version
from axiomchain.tx import TransactionCell
from axiomchain.types import Address, Hash, ObjectId

__all__ = [
    "Signature",
    "ExternalTransaction",
    "PreparedExternalTransaction",
    "prepare_external_transaction",
]

_SIGNING_DOMAIN = b"Axiom::ExternalTransaction::v1"


@dataclass(frozen=True)
class Signature:
    """Opaque signature bytes; verification happens elsewhere."""

    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))


@dataclass(frozen=True)
class ExternalTransaction:
    """A transaction submitted and signed by a user."""

    signer: Address
    nonce: Version
    cells: Sequence[TransactionCell] = ()
    signature: Signature = field(default_factory=Signature)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", tuple(self.cells))

    def signing_hash(self) -> Hash:
        """Return the hash of the payload to be signed.

        Covers signer, nonce and the sorted cell ids; not the signature.
        """
        parts = [_SIGNING_DOMAIN, bytes(self.signer), struct.pack("<Q", self.nonce)]
        parts.extend(bytes(cell_id) for cell_id in sorted(cell.cell_id() for cell in self.cells))
        return Hash.digest(b"".join(parts))


@dataclass(frozen=True)
class PreparedExternalTransaction:
    """A transaction that passed authorization, with its pending nonce update."""

    tx: ExternalTransaction
    nonce_update: tuple[ObjectId, StateObject]


def prepare_external_transaction(tx: ExternalTransaction, state: StateStore) -> PreparedExternalTransaction:
    """Validate the nonce of ``tx`` and prepare it for planning.

    Raises :class:`~axiomchain.state.NonceError` on a bad nonce. Does not
    verify signatures or mutate state.
    """
    nonce_update = validate_and_prepare_nonce_update(tx.signer, tx.nonce, state)
    return PreparedExternalTransaction(tx=tx, nonce_update=nonce_update)