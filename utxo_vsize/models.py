"""
Transaction descriptors consumed by the estimator.

The estimator only reads attributes, so any object exposing the same ones
(e.g. a transaction from a wallet library) works as well.
"""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class TxInput:
    index: int
    script: bytes = b""
    witness: Tuple[bytes, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TxOutput:
    script: bytes
    value: int = 0


@dataclass(frozen=True)
class Transaction:
    inputs: Tuple[TxInput, ...] = field(default_factory=tuple)
    outputs: Tuple[TxOutput, ...] = field(default_factory=tuple)
