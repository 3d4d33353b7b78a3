"""Protocol-reserved account objects (nonce, balance) and the state root."""

from __future__ import annotations

import struct

from axiomchain.hashing import blake3
from axiomchain.state import InvalidNonceError, StateObject, StateStore, Version
from axiomchain.types import Address, Hash, ObjectId

__all__ = [
    "nonce_object_id",
    "validate_and_prepare_nonce_update",
    "balance_object_id",
    "decode_balance",
    "encode_balance",
    "compute_state_root",
]

_NONCE_DOMAIN = b"axiom::nonce"
_BALANCE_DOMAIN = b"axiom::balance"
_STATE_ROOT_DOMAIN = b"Axiom::StateRoot::v1"
_U64_MAX = (1 << 64) - 1


def _domain_object_id(domain: bytes, address: Address) -> ObjectId:
    return ObjectId(Hash.digest(domain + bytes(address)))


def nonce_object_id(address: Address) -> ObjectId:
    """Return the id of the single nonce object belonging to ``address``."""
    return _domain_object_id(_NONCE_DOMAIN, address)


def validate_and_prepare_nonce_update(
    signer: Address, provided_nonce: Version, state: StateStore
) -> tuple[ObjectId, StateObject]:
    """Check ``provided_nonce`` against the signer's nonce object and prepare its update.

    The nonce must equal the current nonce object's version, or 0 when the
    signer has no nonce object yet. Raises :class:`InvalidNonceError` otherwise.
    """
    nonce_id = nonce_object_id(signer)
    existing = state.get(nonce_id)
    if existing is None:
        if provided_nonce != 0:
            raise InvalidNonceError(expected=0, got=provided_nonce)
        return nonce_id, StateObject(nonce_id, signer, b"")
    if provided_nonce != existing.version:
        raise InvalidNonceError(expected=existing.version, got=provided_nonce)
    return nonce_id, existing.next_version()


def balance_object_id(address: Address) -> ObjectId:
    """Return the id of the balance object belonging to ``address``."""
    return _domain_object_id(_BALANCE_DOMAIN, address)


def decode_balance(obj: StateObject) -> int:
    """Decode a little-endian u64 balance from an object's data."""
    if len(obj.data) != 8:
        raise ValueError(f"balance data must be 8 bytes, got {len(obj.data)}")
    return struct.unpack("<Q", obj.data)[0]


def encode_balance(balance: int) -> bytes:
    """Encode a balance as little-endian u64 bytes."""
    if not 0 <= balance <= _U64_MAX:
        raise ValueError(f"balance out of u64 range: {balance}")
    return struct.pack("<Q", balance)


def compute_state_root(state: StateStore) -> Hash:
    """Return the canonical, order-independent root hash of the whole store."""
    parts = [_STATE_ROOT_DOMAIN]
    for object_id, obj in sorted(state.objects(), key=lambda item: item[0]):
        parts.append(bytes(object_id))
        parts.append(struct.pack(">Q", obj.version))
        parts.append(blake3(obj.data))
    return Hash.digest(b"".join(parts))