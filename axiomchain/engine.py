"""Execution engine boundary: context, state view, outcomes and the reference engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from axiomchain.planning import ExecutionPlan
from axiomchain.state import StateObject
from axiomchain.tx import WriteIntent
from axiomchain.types import Epoch, ObjectId, Slot

__all__ = [
    "ExecutionError",
    "UnauthorizedReadError",
    "UnauthorizedWriteError",
    "ExecutionFailedError",
    "ExecutionContext",
    "StateView",
    "ExecutionOutcome",
    "ExecutionEngine",
    "ReferenceExecutionEngine",
]


class ExecutionError(Exception):
    """Base class for deterministic execution errors."""


class UnauthorizedReadError(ExecutionError):
    """Execution attempted to read an undeclared or missing object."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"unauthorized read: {object_id}")


class UnauthorizedWriteError(ExecutionError):
    """Execution attempted a write it is not allowed to make."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"unauthorized write: {object_id}")


class ExecutionFailedError(ExecutionError):
    """Execution logic failed deterministically."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"execution failed: {reason}")


@dataclass(frozen=True)
class ExecutionContext:
    """Immutable context supplied by the protocol to an engine."""

    slot: Slot
    epoch: Epoch


@runtime_checkable
class StateView(Protocol):
    """Read-only view of protocol state."""

    def get_object(self, object_id: ObjectId) -> StateObject | None:
        """Return the object with ``object_id``, or None if it does not exist."""


@dataclass
class ExecutionOutcome:
    """Objects written by execution logic, to be merged with forced writes."""

    writes: dict[ObjectId, StateObject] = field(default_factory=dict)


class ExecutionEngine(ABC):
    """Deterministic, side-effect-free executor of validated plans."""

    @abstractmethod
    def execute(
        self, plan: ExecutionPlan, state: StateView, context: ExecutionContext
    ) -> ExecutionOutcome:
        """Execute ``plan`` against ``state`` and return the proposed writes.

        Must not mutate state; raises :class:`ExecutionError` on failure.
        """


class ReferenceExecutionEngine(ExecutionEngine):
    """Engine that computes nothing and only checks declared constraints."""

    def execute(
        self, plan: ExecutionPlan, state: StateView, context: ExecutionContext
    ) -> ExecutionOutcome:
        """Check that declared reads exist and write intents fit the state."""
        for object_id in plan.read_set:
            if state.get_object(object_id) is None:
                raise UnauthorizedReadError(object_id)

        for object_id, intent in plan.write_intents.items():
            exists = state.get_object(object_id) is not None
            if (intent is WriteIntent.CREATE) == exists:
                raise UnauthorizedWriteError(object_id)

        return ExecutionOutcome()