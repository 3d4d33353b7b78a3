"""The canonical state transition pipeline for a single external transaction."""

from __future__ import annotations

from axiomchain.engine import (
    ExecutionContext,
    ExecutionEngine,
    ExecutionError,
    UnauthorizedWriteError,
)
from axiomchain.external_tx import ExternalTransaction, prepare_external_transaction
from axiomchain.planning import PlanningError, build_execution_plan
from axiomchain.state import NonceError, StateStore
from axiomchain.state_diff import CommitError, StateDiff, commit_state_diff
from axiomchain.tx import TxError

__all__ = ["ProtocolError", "process_external_transaction"]


class ProtocolError(Exception):
    """A transaction was rejected at some stage of the pipeline.

    ``error`` holds the underlying nonce, transaction, planning, execution
    or commit error.
    """

    def __init__(self, error: NonceError | TxError | PlanningError | ExecutionError | CommitError) -> None:
        self.error = error
        super().__init__(f"{type(error).__name__}: {error}")


def process_external_transaction(
    state: StateStore,
    tx: ExternalTransaction,
    engine: ExecutionEngine,
    context: ExecutionContext,
) -> None:
    """Authorize, plan, execute and commit ``tx`` against ``state``.

    Raises :class:`ProtocolError` on any failure; the state is then left as
    it was before the call.
    """
    try:
        prepared = prepare_external_transaction(tx, state)
        plan = build_execution_plan(prepared, state)
        outcome = engine.execute(plan, state, context)
    except (NonceError, TxError, PlanningError, ExecutionError) as exc:
        raise ProtocolError(exc) from exc

    writes = dict(plan.forced_writes)
    for object_id, obj in sorted(outcome.writes.items(), key=lambda item: item[0]):
        if object_id in writes:
            error = UnauthorizedWriteError(object_id)
            raise ProtocolError(error) from error
        writes[object_id] = obj

    diff = StateDiff(read_set=dict(plan.read_set), writes=writes)
    try:
        commit_state_diff(state, diff)
    except CommitError as exc:
        raise ProtocolError(exc) from exc