"""Canonical state transitions and their atomic commit."""

from __future__ import annotations

from dataclasses import dataclass, field

from axiomchain.state import ReadSet, StateError, StateObject, StateStore
from axiomchain.types import ObjectId

__all__ = [
    "CommitError",
    "CommitObjectNotFoundError",
    "CommitStaleReadError",
    "InvalidWriteError",
    "StateDiff",
    "commit_state_diff",
]


class CommitError(Exception):
    """Base class for commit errors."""


class CommitObjectNotFoundError(CommitError):
    """A read object does not exist in the store."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"object not found: {object_id}")


class CommitStaleReadError(CommitError):
    """A read object has changed since it was read."""

    def __init__(self, object_id: ObjectId, expected: int, found: int) -> None:
        self.object_id = object_id
        self.expected = expected
        self.found = found
        super().__init__(f"stale read of {object_id}: expected version {expected}, found {found}")


class InvalidWriteError(CommitError):
    """A write could not be stored."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"invalid write: {object_id}")


@dataclass
class StateDiff:
    """Reads with their expected versions, and the objects to write."""

    read_set: ReadSet = field(default_factory=dict)
    writes: dict[ObjectId, StateObject] = field(default_factory=dict)


def commit_state_diff(state: StateStore, diff: StateDiff) -> None:
    """Validate the read set of ``diff`` and apply its writes.

    Nothing is written unless every read still matches its expected version.
    """
    for object_id, expected in diff.read_set.items():
        current = state.get(object_id)
        if current is None:
            raise CommitObjectNotFoundError(object_id)
        if current.version != expected:
            raise CommitStaleReadError(object_id, expected, current.version)

    for _, obj in sorted(diff.writes.items(), key=lambda item: item[0]):
        try:
            state.insert_or_update(obj)
        except StateError as exc:
            raise InvalidWriteError(obj.id) from exc