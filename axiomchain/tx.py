"""Transaction cells: declared read sets, write intents and opaque call data."""

from __future__ import annotations

import struct
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum

from axiomchain.state import ReadSet, Version
from axiomchain.types import Hash, ObjectId, Slot

__all__ = [
    "TxError",
    "WriteWithoutReadError",
    "TxObjectNotFoundError",
    "CallData",
    "WriteIntent",
    "TransactionCell",
]


class TxError(Exception):
    """Base class for transaction cell errors."""


class WriteWithoutReadError(TxError):
    """A cell declares a write to an object it does not read."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"write without read: {object_id}")


class TxObjectNotFoundError(TxError):
    """A cell refers to an object that does not exist."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"object not found: {object_id}")


@dataclass(frozen=True)
class CallData:
    """Opaque call data passed to the execution runtime."""

    target: ObjectId
    selector: bytes = b""
    payload: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "selector", bytes(self.selector))
        object.__setattr__(self, "payload", bytes(self.payload))


class WriteIntent(IntEnum):
    """What a cell may do to an object it writes."""

    CREATE = 0
    MODIFY = 1
    DELETE = 2


@dataclass(frozen=True)
class TransactionCell:
    """Smallest schedulable execution unit.

    It declares what may be touched, not what will be written. Every object
    in the write set must also appear in the read set.
    """

    slot: Slot
    read_set: ReadSet = field(default_factory=dict)
    write_set: dict[ObjectId, WriteIntent] = field(default_factory=dict)
    call: CallData | None = None

    def __post_init__(self) -> None:
        if self.call is None:
            raise TypeError("TransactionCell requires call data")
        read_set: dict[ObjectId, Version] = dict(self.read_set)
        write_set = {oid: WriteIntent(intent) for oid, intent in sorted(_items(self.write_set))}
        for object_id in write_set:
            if object_id not in read_set:
                raise WriteWithoutReadError(object_id)
        object.__setattr__(self, "read_set", read_set)
        object.__setattr__(self, "write_set", write_set)

    def cell_id(self) -> Hash:
        """Return the deterministic identifier of the declared intent.

        The slot is deliberately excluded; reads and writes are taken in
        canonical (object id) order.
        """
        parts: list[bytes] = []
        for object_id, version in sorted(self.read_set.items()):
            parts.append(bytes(object_id))
            parts.append(struct.pack(">Q", version))
        for object_id, intent in sorted(self.write_set.items()):
            parts.append(bytes(object_id))
            parts.append(bytes([int(intent)]))
        parts.append(bytes(self.call.target))
        parts.append(self.call.selector)
        parts.append(self.call.payload)
        return Hash.digest(b"".join(parts))


def _items(mapping: Mapping[ObjectId, WriteIntent]) -> list[tuple[ObjectId, WriteIntent]]:
    return list(mapping.items())