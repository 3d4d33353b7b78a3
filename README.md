# axiomchain

A small, deterministic state-transition library for an object-based ledger.
All state lives in isolated, versioned, owned objects; transactions declare
what they read and what they may write; blocks execute transactions in order
and commit to the resulting state and receipts with canonical hashes.

Everything is pure Python with no third-party dependencies, including the
BLAKE3 hash used for every identifier and root.

## Modules

- **`axiomchain.hashing`**: `blake3(data)` returns the 32-byte BLAKE3 digest
  (default output length, unkeyed mode).
- **`axiomchain.types`**: immutable `Address`, `Hash`, `ObjectId`, `Slot` and
  `Epoch`. `Address` and `Hash` take exactly 32 bytes; `Hash.digest(data)`
  hashes bytes with BLAKE3; `Address.zero()` and `Hash.zero()` give the
  all-zero values; `Slot.next()` and `Epoch.next()` step forward within the
  u64 range.
- **`axiomchain.state`**: `StateObject` (id, owner, data, version) and the
  in-memory `StateStore`. Objects start at version 0; `next_version()` and
  `next_with_data()` return the next version. `StateStore.insert` refuses an
  existing id, `insert_or_update` overwrites, and `apply(read_set, write_set)`
  checks every read version and that every write carries the next version,
  changing nothing if any check fails. Errors: `ObjectAlreadyExistsError`,
  `ObjectNotFoundError`, `StaleReadError`, `InvalidVersionError` (all
  `StateError`), and `InvalidNonceError`, `NonceDecodeError` (both
  `NonceError`).
- **`axiomchain.accounts`**: per-address nonce and balance objects
  (`nonce_object_id`, `validate_and_prepare_nonce_update`,
  `balance_object_id`, `encode_balance`, `decode_balance`; balances are
  little-endian u64) and `compute_state_root`, a hash over all objects in id
  order.
- **`axiomchain.tx`**: `TransactionCell` declares a slot, a read set, a
  write set of `WriteIntent` values (`CREATE`, `MODIFY`, `DELETE`) and
  `CallData`. Every written object must also be read, otherwise
  `WriteWithoutReadError` is raised. `cell_id()` hashes the declared intent,
  leaving out the slot.
- **`axiomchain.external_tx`**: `ExternalTransaction` (signer, nonce, cells,
  `Signature`), its `signing_hash()`, and `prepare_external_transaction`,
  which checks the nonce and returns a `PreparedExternalTransaction`.
- **`axiomchain.planning`**: `build_execution_plan` merges the cells' reads
  and write intents, adds the nonce update and a fee deduction of
  `BASE_FEE` (1) as forced writes, and checks ownership. It raises
  `ReadConflictError`, `WriteIntentConflictError`, `PlanObjectNotFoundError`,
  `UnauthorizedOwnerWriteError` or `InsufficientBalanceError` (all
  `PlanningError`).
- **`axiomchain.engine`**: `ExecutionContext`, the `StateView` protocol,
  `ExecutionOutcome`, the abstract `ExecutionEngine` and
  `ReferenceExecutionEngine`, which checks that declared reads exist and
  that write intents fit the state, and proposes no writes of its own.
- **`axiomchain.state_diff`**: `StateDiff` and `commit_state_diff`, which
  validates the read set and then stores the writes.
- **`axiomchain.protocol`**: `process_external_transaction(state, tx,
  engine, context)` runs nonce check, planning, execution and commit. Any
  failure raises `ProtocolError`, whose `error` attribute holds the
  underlying error; the state is left as it was.
- **`axiomchain.block`**: `Block`, `encode_block`, `block_hash` (also
  `Block.hash()`), `compute_receipts_root` and `execute_block`, which runs
  each transaction in order, records a `Success` or `Failure` for each in a
  `BlockExecutionResult`, and sets the block's `state_root` and
  `receipts_root`.

## Example

```python
from axiomchain.types import Address, Epoch, Hash, Slot
from axiomchain.state import StateObject, StateStore
from axiomchain.accounts import balance_object_id, decode_balance, encode_balance
from axiomchain.tx import CallData, TransactionCell
from axiomchain.external_tx import ExternalTransaction, Signature
from axiomchain.engine import ReferenceExecutionEngine
from axiomchain.block import Block, Success, execute_block

signer = Address(bytes([1]) * 32)
balance_id = balance_object_id(signer)

state = StateStore()
state.insert(StateObject(balance_id, signer, encode_balance(10)))

cell = TransactionCell(
    slot=Slot(1),
    read_set={},
    write_set={},
    call=CallData(target=balance_id, selector=b"", payload=b""),
)
tx = ExternalTransaction(signer=signer, nonce=0, cells=[cell], signature=Signature(b""))

block = Block(
    parent_hash=None,
    slot=Slot(1),
    epoch=Epoch(0),
    state_root=Hash.zero(),
    receipts_root=Hash.zero(),
    transactions=[tx],
)

result = execute_block(state, block, ReferenceExecutionEngine())
assert isinstance(result.tx_results[0], Success)
assert decode_balance(state.get(balance_id)) == 9   # one unit of fee charged
print(block.state_root, block.hash())
```

## What it does not do

- Signatures are carried as opaque bytes and are never verified.
- `ReferenceExecutionEngine` runs no contract code; it only checks declared
  reads and write intents. Real computation needs your own
  `ExecutionEngine` subclass.
- State is kept in memory only; there is no storage, networking, consensus
  or command-line tool.
- The BLAKE3 implementation is pure Python and is meant for correctness,
  not speed.

## Running the tests

```
pip install -e ".[test]"
pytest
```