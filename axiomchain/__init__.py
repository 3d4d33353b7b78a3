"""Deterministic object-based ledger state, transaction pipeline and block execution."""

__version__ = "0.1.0"

__all__ = [
    "accounts",
    "block",
    "engine",
    "external_tx",
    "hashing",
    "planning",
    "protocol",
    "state",
    "state_diff",
    "tx",
    "types",
]