import pytest

from axiomchain.accounts import (
    balance_object_id,
    compute_state_root,
    decode_balance,
    encode_balance,
    nonce_object_id,
)
from axiomchain.block import (
    Block,
    BlockExecutionResult,
    Failure,
    Success,
    block_hash,
    compute_receipts_root,
    encode_block,
    execute_block,
)
from axiomchain.engine import ReferenceExecutionEngine
from axiomchain.external_tx import ExternalTransaction, Signature
from axiomchain.protocol import ProtocolError
from axiomchain.state import InvalidNonceError, StateObject, StateStore
from axiomchain.tx import CallData, TransactionCell
from axiomchain.types import Address, Epoch, Hash, ObjectId, Slot


def make_cell(target):
    return TransactionCell(Slot(1), {}, {}, CallData(target=target))


def make_tx(signer, nonce, target, sig_byte):
    return ExternalTransaction(
        signer=signer,
        nonce=nonce,
        cells=[make_cell(target)],
        signature=Signature(bytes([sig_byte]) * 64),
    )


def plain_tx(signer, nonce, target):
    return ExternalTransaction(signer=signer, nonce=nonce, cells=[make_cell(target)], signature=Signature(b""))


def make_block(txs, slot=1, epoch=0, state_root=None, receipts_root=None, parent_hash=None):
    return Block(
        parent_hash=parent_hash,
        slot=Slot(slot),
        epoch=Epoch(epoch),
        state_root=state_root or Hash.zero(),
        receipts_root=receipts_root or Hash.zero(),
        transactions=list(txs),
    )


def funded_state(signer, amount):
    state = StateStore()
    balance_id = balance_object_id(signer)
    state.insert(StateObject(balance_id, signer, encode_balance(amount)))
    return state, balance_id


def expected_receipts(block, result):
    return compute_receipts_root([tx.signing_hash() for tx in block.transactions], result.tx_results)


# ---- execution ----


def test_block_executes_all_valid_transactions():
    signer = Address(bytes([1]) * 32)
    state, balance_id = funded_state(signer, 10)
    block = make_block([plain_tx(signer, 0, balance_id), plain_tx(signer, 0, balance_id)])

    result = execute_block(state, block, ReferenceExecutionEngine())

    assert block.receipts_root == expected_receipts(block, result)
    assert len(result.tx_results) == 2
    assert all(isinstance(r, Success) for r in result.tx_results)
    assert decode_balance(state.get(balance_id)) == 8
    assert state.get(nonce_object_id(signer)).version == 1
    assert block.state_root == compute_state_root(state)


def test_block_failure_does_not_affect_later_txs():
    signer = Address(bytes([2]) * 32)
    state, balance_id = funded_state(signer, 10)
    block = make_block(
        [
            plain_tx(signer, 0, balance_id),
            plain_tx(signer, 5, balance_id),
            plain_tx(signer, 0, balance_id),
        ]
    )

    result = execute_block(state, block, ReferenceExecutionEngine())

    assert block.receipts_root == expected_receipts(block, result)
    assert isinstance(result.tx_results[0], Success)
    assert isinstance(result.tx_results[1], Failure)
    assert isinstance(result.tx_results[2], Success)
    assert decode_balance(state.get(balance_id)) == 8
    assert block.state_root == compute_state_root(state)


def test_failure_carries_protocol_error():
    signer = Address(bytes([2]) * 32)
    state, balance_id = funded_state(signer, 10)
    block = make_block([plain_tx(signer, 5, balance_id)])

    result = execute_block(state, block, ReferenceExecutionEngine())

    failure = result.tx_results[0]
    assert isinstance(failure, Failure)
    assert isinstance(failure.error, ProtocolError)
    assert isinstance(failure.error.error, InvalidNonceError)
    assert failure.error.error.expected == 0
    assert failure.error.error.got == 5


def test_block_all_invalid_txs_no_state_change():
    signer = Address(bytes([3]) * 32)
    state, balance_id = funded_state(signer, 5)
    block = make_block([plain_tx(signer, 1, balance_id), plain_tx(signer, 2, balance_id)])

    result = execute_block(state, block, ReferenceExecutionEngine())

    assert block.receipts_root == expected_receipts(block, result)
    assert all(isinstance(r, Failure) for r in result.tx_results)
    assert decode_balance(state.get(balance_id)) == 5
    assert state.get(nonce_object_id(signer)) is None
    assert block.state_root == compute_state_root(state)


def test_block_execution_is_deterministic():
    signer = Address(bytes([4]) * 32)
    state1, balance_id = funded_state(signer, 10)
    state2, _ = funded_state(signer, 10)
    block = make_block([plain_tx(signer, 0, balance_id), plain_tx(signer, 0, balance_id)])
    engine = ReferenceExecutionEngine()

    r1 = execute_block(state1, block, engine)
    root1 = block.state_root
    r2 = execute_block(state2, block, engine)

    assert len(r1.tx_results) == len(r2.tx_results)
    assert decode_balance(state1.get(balance_id)) == decode_balance(state2.get(balance_id))
    assert root1 == block.state_root


def test_empty_block_commits_state_root():
    state, _ = funded_state(Address(bytes([7]) * 32), 3)
    block = make_block([])

    result = execute_block(state, block, ReferenceExecutionEngine())

    assert result == BlockExecutionResult(tx_results=[])
    assert block.state_root == compute_state_root(state)
    assert block.receipts_root == compute_receipts_root([], [])


# ---- receipts root ----


def test_receipts_root_length_mismatch_raises():
    with pytest.raises(ValueError):
        compute_receipts_root([Hash.zero()], [])


def test_receipts_root_distinguishes_success_and_failure():
    tx_hash = Hash(bytes([3]) * 32)
    err = ProtocolError(InvalidNonceError(expected=0, got=1))
    ok = compute_receipts_root([tx_hash], [Success(fee_charged=1)])
    bad = compute_receipts_root([tx_hash], [Failure(error=err)])
    assert ok != bad


def test_receipts_root_depends_on_order():
    a, b = Hash(bytes([1]) * 32), Hash(bytes([2]) * 32)
    results = [Success(1), Success(1)]
    assert compute_receipts_root([a, b], results) != compute_receipts_root([b, a], results)


# ---- hashing ----


def test_block_hash_is_deterministic():
    signer = Address(bytes([1]) * 32)
    target = ObjectId(Hash(bytes([9]) * 32))
    txs = [make_tx(signer, 0, target, 1), make_tx(signer, 0, target, 2)]

    block1 = make_block(txs, slot=10, epoch=1)
    block2 = make_block(txs, slot=10, epoch=1)

    assert block1.hash() == block2.hash()


def test_block_hash_changes_with_tx_order():
    signer = Address(bytes([2]) * 32)
    target = ObjectId(Hash(bytes([8]) * 32))
    tx1 = make_tx(signer, 0, target, 1)
    tx2 = make_tx(signer, 0, target, 2)

    assert make_block([tx1, tx2], slot=5).hash() != make_block([tx2, tx1], slot=5).hash()


def test_block_hash_changes_with_signature():
    signer = Address(bytes([3]) * 32)
    target = ObjectId(Hash(bytes([7]) * 32))
    block_a = make_block([make_tx(signer, 0, target, 1)], slot=7, epoch=2)
    block_b = make_block([make_tx(signer, 0, target, 9)], slot=7, epoch=2)

    assert block_a.hash() != block_b.hash()


def test_block_hash_changes_with_context():
    signer = Address(bytes([4]) * 32)
    target = ObjectId(Hash(bytes([6]) * 32))
    tx = make_tx(signer, 0, target, 1)

    slot_a = make_block([tx], slot=1, epoch=0)
    slot_b = make_block([tx], slot=2, epoch=0)
    epoch_c = make_block([tx], slot=1, epoch=1)

    assert slot_a.hash() != slot_b.hash()
    assert slot_a.hash() != epoch_c.hash()


def test_canonical_encoding_is_stable():
    signer = Address(bytes([5]) * 32)
    target = ObjectId(Hash(bytes([5]) * 32))
    block = make_block([make_tx(signer, 0, target, 1)], slot=42, epoch=9)

    assert block.hash() == block.hash()
    assert block.hash() == block_hash(block)


def test_block_hash_changes_with_state_root():
    signer = Address(bytes([9]) * 32)
    target = ObjectId(Hash(bytes([1]) * 32))
    tx = make_tx(signer, 0, target, 1)

    block_a = make_block([tx])
    block_b = make_block([tx], state_root=Hash(bytes([7]) * 32))

    assert block_a.hash() != block_b.hash()


def test_block_hash_changes_with_receipts_root():
    signer = Address(bytes([8]) * 32)
    target = ObjectId(Hash(bytes([4]) * 32))
    tx = make_tx(signer, 0, target, 1)

    block_a = make_block([tx])
    block_b = make_block([tx], receipts_root=Hash(bytes([9]) * 32))

    assert block_a.hash() != block_b.hash()


def test_block_hash_changes_with_parent_hash():
    genesis = make_block([])
    child = make_block([], parent_hash=Hash.zero())
    assert genesis.hash() != child.hash()


# ---- encoding layout ----


def test_encode_empty_genesis_block_layout():
    state_root = Hash(bytes([0xAA]) * 32)
    receipts_root = Hash(bytes([0xBB]) * 32)
    encoded = encode_block(None, Slot(1), Epoch(2), state_root, receipts_root, [])

    expected = (
        b"Axiom::Block::v1"
        + b"\x00"
        + b"\x00\x00\x00\x00\x00\x00\x00\x01"
        + b"\x00\x00\x00\x00\x00\x00\x00\x02"
        + bytes([0xAA]) * 32
        + bytes([0xBB]) * 32
        + b"\x00\x00\x00\x00"
    )
    assert encoded == expected


def test_encode_with_parent_hash_sets_flag():
    parent = Hash(bytes([0x11]) * 32)
    encoded = encode_block(parent, Slot(0), Epoch(0), Hash.zero(), Hash.zero(), [])
    prefix = len(b"Axiom::Block::v1")
    assert encoded[prefix] == 1
    assert encoded[prefix + 1 : prefix + 33] == bytes([0x11]) * 32


def test_encode_transaction_layout():
    signer = Address(bytes([5]) * 32)
    target = ObjectId(Hash(bytes([6]) * 32))
    tx = make_tx(signer, 3, target, 7)
    encoded = encode_block(None, Slot(0), Epoch(0), Hash.zero(), Hash.zero(), [tx])

    tx_part = (
        b"Axiom::ExternalTx::v1"
        + bytes([5]) * 32
        + b"\x00\x00\x00\x00\x00\x00\x00\x03"
        + b"\x00\x00\x00\x01"
        + bytes(tx.cells[0].cell_id())
        + b"\x00\x00\x00\x40"
        + bytes([7]) * 64
    )
    assert encoded.endswith(b"\x00\x00\x00\x01" + tx_part)
    assert Hash.digest(encoded) == make_block([tx], slot=0).hash()