"""Versioned state objects, the in-memory state store, and state/nonce errors."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Dict

from axiomchain.types import Address, ObjectId

__all__ = [
    "Version",
    "ReadSet",
    "WriteSet",
    "StateError",
    "ObjectAlreadyExistsError",
    "ObjectNotFoundError",
    "StaleReadError",
    "InvalidVersionError",
    "NonceError",
    "InvalidNonceError",
    "NonceDecodeError",
    "StateObject",
    "StateStore",
]

Version = int

ReadSet = Dict[ObjectId, Version]
"""Versions of state objects read during a transaction."""

WriteSet = Dict[ObjectId, "StateObject"]
"""Proposed updates to state objects."""


class StateError(Exception):
    """Base class for state store errors."""


class ObjectAlreadyExistsError(StateError):
    """An object with the same identifier is already stored."""

    def __init__(self, object_id: ObjectId | None = None) -> None:
        self.object_id = object_id
        super().__init__("object already exists" if object_id is None else f"object already exists: {object_id}")


class ObjectNotFoundError(StateError):
    """A required object is missing from the store."""

    def __init__(self, object_id: ObjectId | None = None) -> None:
        self.object_id = object_id
        super().__init__("object not found" if object_id is None else f"object not found: {object_id}")


class StaleReadError(StateError):
    """A read was made against an outdated object version."""

    def __init__(self, expected: int, found: int) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"stale read: expected version {expected}, found {found}")


class InvalidVersionError(StateError):
    """A written object does not carry the next expected version."""

    def __init__(self, expected: int, found: int) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"invalid version: expected {expected}, found {found}")


class NonceError(Exception):
    """Base class for nonce validation errors."""


class InvalidNonceError(NonceError):
    """The provided nonce does not match the expected one."""

    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"invalid nonce: expected {expected}, got {got}")


class NonceDecodeError(NonceError):
    """A nonce object could not be decoded."""


@dataclass(frozen=True)
class StateObject:
    """Smallest unit of mutable on-chain state: isolated, versioned and owned.

    New objects start at version 0; updates produce new objects.
    """

    id: ObjectId
    owner: Address
    data: bytes = b""
    version: Version = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if isinstance(self.version, bool) or not isinstance(self.version, int) or self.version < 0:
            raise ValueError(f"invalid object version: {self.version!r}")

    def next_version(self) -> StateObject:
        """Return a copy with the version incremented and the same data."""
        return replace(self, version=self.version + 1)

    def next_with_data(self, new_data: bytes) -> StateObject:
        """Return a copy with the version incremented and ``new_data`` as data."""
        return replace(self, version=self.version + 1, data=bytes(new_data))


class StateStore:
    """In-memory, version-aware store of state objects."""

    def __init__(self) -> None:
        self._objects: dict[ObjectId, StateObject] = {}

    def get(self, object_id: ObjectId) -> StateObject | None:
        """Return the object with ``object_id``, or None if absent."""
        return self._objects.get(object_id)

    def get_object(self, object_id: ObjectId) -> StateObject | None:
        """Read-only view lookup; same as :meth:`get`."""
        return self._objects.get(object_id)

    def insert(self, obj: StateObject) -> None:
        """Insert a new object; raise if one with the same id exists."""
        if obj.id in self._objects:
            raise ObjectAlreadyExistsError(obj.id)
        self._objects[obj.id] = obj

    def apply(self, read_set: Mapping[ObjectId, Version], write_set: Mapping[ObjectId, StateObject]) -> None:
        """Validate and apply ``write_set`` atomically.

        Every read must match the stored version, and every write must carry
        the next version (or 0 for a new object). On any violation nothing
        changes.
        """
        for object_id, expected in read_set.items():
            existing = self._objects.get(object_id)
            if existing is None:
                raise ObjectNotFoundError(object_id)
            if existing.version != expected:
                raise StaleReadError(expected=expected, found=existing.version)

        for object_id, new_object in write_set.items():
            existing = self._objects.get(object_id)
            expected = 0 if existing is None else existing.version + 1
            if new_object.version != expected:
                raise InvalidVersionError(expected=expected, found=new_object.version)

        self._objects.update(write_set)

    def insert_or_update(self, obj: StateObject) -> None:
        """Insert or overwrite an object without version checks."""
        self._objects[obj.id] = obj

    def objects(self) -> Iterator[tuple[ObjectId, StateObject]]:
        """Iterate over all ``(id, object)`` pairs."""
        return iter(list(self._objects.items()))

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __len__(self) -> int:
        return len(self._objects)