"""Execution planning: turning authorized transactions into execution plans."""

from __future__ import annotations

from dataclasses import dataclass, field

from axiomchain.accounts import balance_object_id, decode_balance, encode_balance
from axiomchain.external_tx import PreparedExternalTransaction
from axiomchain.state import ReadSet, StateObject, StateStore, Version
from axiomchain.tx import TransactionCell, WriteIntent
from axiomchain.types import Address, ObjectId

__all__ = [
    "BASE_FEE",
    "PlanningError",
    "ReadConflictError",
    "WriteIntentConflictError",
    "PlanObjectNotFoundError",
    "UnauthorizedOwnerWriteError",
    "InsufficientBalanceError",
    "ExecutionPlan",
    "build_execution_plan",
]

BASE_FEE = 1


class PlanningError(Exception):
    """Base class for planning errors."""


class ReadConflictError(PlanningError):
    """Cells read the same object at different versions."""

    def __init__(self, object_id: ObjectId, expected: int, found: int) -> None:
        self.object_id = object_id
        self.expected = expected
        self.found = found
        super().__init__(f"read conflict on {object_id}: expected version {expected}, found {found}")


class WriteIntentConflictError(PlanningError):
    """Write intents for an object conflict, or a created object already exists."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"write intent conflict on {object_id}")


class PlanObjectNotFoundError(PlanningError):
    """A required object does not exist."""

    def __init__(self, object_id: ObjectId) -> None:
        self.object_id = object_id
        super().__init__(f"object not found: {object_id}")


class UnauthorizedOwnerWriteError(PlanningError):
    """The signer does not own an object it intends to modify or delete."""

    def __init__(self, object_id: ObjectId, owner: Address, signer: Address) -> None:
        self.object_id = object_id
        self.owner = owner
        self.signer = signer
        super().__init__(f"unauthorized write to {object_id}: owner {owner}, signer {signer}")


class InsufficientBalanceError(PlanningError):
    """The signer's balance cannot cover the transaction fee."""

    def __init__(self, available: int, required: int) -> None:
        self.available = available
        self.required = required
        super().__init__(f"insufficient balance: available {available}, required {required}")


@dataclass
class ExecutionPlan:
    """Deterministic, state-aware plan derived from an authorized transaction.

    ``forced_writes`` are protocol updates (nonce, fee) that must be applied
    if execution succeeds.
    """

    read_set: ReadSet = field(default_factory=dict)
    write_intents: dict[ObjectId, WriteIntent] = field(default_factory=dict)
    forced_writes: dict[ObjectId, StateObject] = field(default_factory=dict)
    cells: tuple[TransactionCell, ...] = ()


def _merge_reads(cells: tuple[TransactionCell, ...]) -> dict[ObjectId, Version]:
    merged: dict[ObjectId, Version] = {}
    for cell in cells:
        for object_id, version in cell.read_set.items():
            existing = merged.setdefault(object_id, version)
            if existing != version:
                raise ReadConflictError(object_id, existing, version)
    return merged


def _merge_writes(cells: tuple[TransactionCell, ...]) -> dict[ObjectId, WriteIntent]:
    merged: dict[ObjectId, WriteIntent] = {}
    for cell in cells:
        for object_id, intent in cell.write_set.items():
            if merged.setdefault(object_id, intent) != intent:
                raise WriteIntentConflictError(object_id)
    return dict(sorted(merged.items()))


def build_execution_plan(petx: PreparedExternalTransaction, state: StateStore) -> ExecutionPlan:
    """Build an execution plan from a prepared transaction.

    Injects the nonce update and fee deduction, merges the cells' read sets
    and write intents, and checks that writes respect object ownership.
    Does not execute anything or mutate ``state``.
    """
    signer = petx.tx.signer
    forced_writes: dict[ObjectId, StateObject] = {}

    nonce_id, nonce_object = petx.nonce_update
    forced_writes[nonce_id] = nonce_object

    balance_id = balance_object_id(signer)
    balance_obj = state.get(balance_id)
    if balance_obj is None:
        raise PlanObjectNotFoundError(balance_id)
    current_balance = decode_balance(balance_obj)
    if current_balance < BASE_FEE:
        raise InsufficientBalanceError(available=current_balance, required=BASE_FEE)
    forced_writes[balance_id] = balance_obj.next_with_data(encode_balance(current_balance - BASE_FEE))

    cells = tuple(petx.tx.cells)
    read_set = _merge_reads(cells)
    write_intents = _merge_writes(cells)

    for object_id, intent in write_intents.items():
        current = state.get(object_id)
        if intent is WriteIntent.CREATE:
            if current is not None:
                raise WriteIntentConflictError(object_id)
            continue
        if current is None:
            raise PlanObjectNotFoundError(object_id)
        if current.owner != signer:
            raise UnauthorizedOwnerWriteError(object_id, current.owner, signer)

    return ExecutionPlan(
        read_set=read_set,
        write_intents=write_intents,
        forced_writes=dict(sorted(forced_writes.items())),
        cells=cells,
    )