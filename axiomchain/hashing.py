"""BLAKE3 hashing (default 32-byte output, unkeyed mode)."""

from __future__ import annotations

import struct
from dataclasses import dataclass

__all__ = ["blake3", "DIGEST_LENGTH"]

DIGEST_LENGTH = 32

_BLOCK_LEN = 64
_CHUNK_LEN = 1024
_MASK = 0xFFFFFFFF

_CHUNK_START = 1 << 0
_CHUNK_END = 1 << 1
_PARENT = 1 << 2
_ROOT = 1 << 3

_IV = (
    0x6A09E667,
    0xBB67AE85,
    0x3C6EF372,
    0xA54FF53A,
    0x510E527F,
    0x9B05688C,
    0x1F83D9AB,
    0x5BE0CD19,
)

_MSG_PERMUTATION = (2, 6, 3, 10, 7, 0, 4, 13, 1, 11, 12, 5, 9, 14, 15, 8)

# Column and diagonal steps of a round: state indices and message word indices.
_ROUND_STEPS = (
    (0, 4, 8, 12, 0, 1),
    (1, 5, 9, 13, 2, 3),
    (2, 6, 10, 14, 4, 5),
    (3, 7, 11, 15, 6, 7),
    (0, 5, 10, 15, 8, 9),
    (1, 6, 11, 12, 10, 11),
    (2, 7, 8, 13, 12, 13),
    (3, 4, 9, 14, 14, 15),
)


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK


def _round(s: list[int], m: tuple[int, ...]) -> None:
    for a, b, c, d, x, y in _ROUND_STEPS:
        s[a] = (s[a] + s[b] + m[x]) & _MASK
        s[d] = _rotr(s[d] ^ s[a], 16)
        s[c] = (s[c] + s[d]) & _MASK
        s[b] = _rotr(s[b] ^ s[c], 12)
        s[a] = (s[a] + s[b] + m[y]) & _MASK
        s[d] = _rotr(s[d] ^ s[a], 8)
        s[c] = (s[c] + s[d]) & _MASK
        s[b] = _rotr(s[b] ^ s[c], 7)


def _compress(
    cv: tuple[int, ...],
    words: tuple[int, ...],
    counter: int,
    block_len: int,
    flags: int,
) -> list[int]:
    state = [
        *cv,
        *_IV[:4],
        counter & _MASK,
        (counter >> 32) & _MASK,
        block_len,
        flags,
    ]
    message = words
    for round_number in range(7):
        _round(state, message)
        if round_number < 6:
            message = tuple(message[p] for p in _MSG_PERMUTATION)
    for i, cv_word in enumerate(cv):
        state[i] ^= state[i + 8]
        state[i + 8] ^= cv_word
    return state


def _words(block: bytes) -> tuple[int, ...]:
    return struct.unpack("<16I", block.ljust(_BLOCK_LEN, b"\x00"))


@dataclass(frozen=True)
class _Output:
    """A pending compression whose result is either a chaining value or the root."""

    cv: tuple[int, ...]
    words: tuple[int, ...]
    counter: int
    block_len: int
    flags: int

    def chaining_value(self) -> tuple[int, ...]:
        return tuple(
            _compress(self.cv, self.words, self.counter, self.block_len, self.flags)[:8]
        )

    def root_digest(self) -> bytes:
        words = _compress(self.cv, self.words, 0, self.block_len, self.flags | _ROOT)
        return struct.pack("<8I", *words[:8])


def _chunk_output(chunk: bytes, counter: int) -> _Output:
    blocks = [chunk[i : i + _BLOCK_LEN] for i in range(0, len(chunk), _BLOCK_LEN)] or [b""]
    cv = _IV
    flags = _CHUNK_START
    for block in blocks[:-1]:
        cv = tuple(_compress(cv, _words(block), counter, _BLOCK_LEN, flags)[:8])
        flags = 0
    last = blocks[-1]
    return _Output(cv, _words(last), counter, len(last), flags | _CHUNK_END)


def _subtree_output(chunks: list[bytes], first_counter: int) -> _Output:
    if len(chunks) == 1:
        return _chunk_output(chunks[0], first_counter)
    left_count = 1 << ((len(chunks) - 1).bit_length() - 1)
    left = _subtree_output(chunks[:left_count], first_counter).chaining_value()
    right = _subtree_output(chunks[left_count:], first_counter + left_count).chaining_value()
    return _Output(_IV, left + right, 0, _BLOCK_LEN, _PARENT)


def blake3(data: bytes | bytearray | memoryview) -> bytes:
    """Return the 32-byte BLAKE3 digest of ``data``."""
    payload = bytes(data)
    chunks = [payload[i : i + _CHUNK_LEN] for i in range(0, len(payload), _CHUNK_LEN)] or [b""]
    return _subtree_output(chunks, 0).root_digest()