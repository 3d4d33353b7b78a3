"""Core primitive types: addresses, hashes, object identifiers, slots and epochs."""

from __future__ import annotations

from dataclasses import dataclass

from axiomchain.hashing import blake3

__all__ = [
    "ADDRESS_LENGTH",
    "HASH_LENGTH",
    "Address",
    "Hash",
    "ObjectId",
    "Slot",
    "Epoch",
]

ADDRESS_LENGTH = 32
HASH_LENGTH = 32

_U64_MAX = (1 << 64) - 1


def _fixed_bytes(value: bytes | bytearray, length: int, kind: str) -> bytes:
    raw = bytes(value)
    if len(raw) != length:
        raise ValueError(f"{kind} must be {length} bytes, got {len(raw)}")
    return raw


def _check_u64(value: int, kind: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{kind} value must be an int")
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"{kind} value out of u64 range: {value}")


@dataclass(frozen=True)
class Address:
    """Fixed-size, immutable account identifier.

    The zero address is a sentinel only and must not be used for ownership.
    """

    raw: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", _fixed_bytes(self.raw, ADDRESS_LENGTH, "Address"))

    @classmethod
    def zero(cls) -> Address:
        """Return the all-zero address."""
        return cls(bytes(ADDRESS_LENGTH))

    def __bytes__(self) -> bytes:
        return self.raw

    def __repr__(self) -> str:
        return f"Address(0x{self.raw[:4].hex()}...)"

    def __str__(self) -> str:
        return self.raw.hex()


@dataclass(frozen=True, order=True)
class Hash:
    """32-byte cryptographic hash, ordered by its bytes."""

    raw: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", _fixed_bytes(self.raw, HASH_LENGTH, "Hash"))

    @classmethod
    def zero(cls) -> Hash:
        """Return the all-zero hash."""
        return cls(bytes(HASH_LENGTH))

    @classmethod
    def digest(cls, data: bytes | bytearray | memoryview) -> Hash:
        """Return the BLAKE3 hash of ``data``."""
        return cls(blake3(data))

    def __bytes__(self) -> bytes:
        return self.raw

    def __repr__(self) -> str:
        return f"Hash(0x{self.raw[:4].hex()}...)"

    def __str__(self) -> str:
        return self.raw.hex()


@dataclass(frozen=True, order=True)
class ObjectId:
    """Opaque identifier of a state object, backed by a hash."""

    hash: Hash

    def __post_init__(self) -> None:
        if not isinstance(self.hash, Hash):
            raise TypeError("ObjectId must wrap a Hash")

    def __bytes__(self) -> bytes:
        return self.hash.raw

    def __repr__(self) -> str:
        return f"ObjectId({self.hash!r})"

    def __str__(self) -> str:
        return str(self.hash)


@dataclass(frozen=True, order=True)
class Slot:
    """Logical, strictly increasing unit of time."""

    value: int

    def __post_init__(self) -> None:
        _check_u64(self.value, "Slot")

    def next(self) -> Slot:
        """Return the following slot."""
        if self.value == _U64_MAX:
            raise OverflowError("slot overflow")
        return Slot(self.value + 1)

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"Slot({self.value})"

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class Epoch:
    """Logical epoch grouping slots for protocol-wide transitions."""

    value: int

    def __post_init__(self) -> None:
        _check_u64(self.value, "Epoch")

    def next(self) -> Epoch:
        """Return the following epoch."""
        if self.value == _U64_MAX:
            raise OverflowError("epoch overflow")
        return Epoch(self.value + 1)

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"Epoch({self.value})"

    def __str__(self) -> str:
        return str(self.value)