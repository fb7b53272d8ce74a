"""
Pytest configuration and shared fixtures

Signed inputs are built from zero bytes with the serialized lengths of real
2-of-3 multisig spends; the estimator only looks at their shape.
"""

import pytest

import utxo_vsize.config as config_module
from utxo_vsize.models import Transaction, TxInput, TxOutput

ECDSA_SIG = bytes(72)
SCHNORR_SIG = bytes(64)
MULTISIG_SCRIPT = bytes([0x52]) + bytes(104)
TAPSCRIPT = bytes(68)


def p2sh_input(index: int = 0) -> TxInput:
    return TxInput(index=index, script=bytes(254))


def p2sh_p2wsh_input(index: int = 0) -> TxInput:
    return TxInput(index=index, script=bytes(35), witness=(b"", ECDSA_SIG, ECDSA_SIG, MULTISIG_SCRIPT))


def p2wsh_input(index: int = 0) -> TxInput:
    return TxInput(index=index, witness=(b"", ECDSA_SIG, ECDSA_SIG, MULTISIG_SCRIPT))


def p2tr_keypath_input(index: int = 0) -> TxInput:
    return TxInput(index=index, witness=(SCHNORR_SIG,))


def p2tr_script_path_input(index: int = 0, depth: int = 1) -> TxInput:
    control_block = bytes([0xC0]) + bytes(32) + bytes(32 * depth)
    return TxInput(index=index, witness=(SCHNORR_SIG, SCHNORR_SIG, TAPSCRIPT, control_block))


def unsigned_input(index: int = 0) -> TxInput:
    return TxInput(index=index)


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts without a cached configuration."""
    monkeypatch.setattr(config_module, "_config", None)


@pytest.fixture
def p2pkh_output() -> TxOutput:
    """Standard 25 byte pay-to-pubkey-hash output."""
    return TxOutput(script=bytes(25), value=10_000)


@pytest.fixture
def unsigned_tx(p2pkh_output) -> Transaction:
    return Transaction(inputs=(unsigned_input(0),), outputs=(p2pkh_output,))


@pytest.fixture
def signed_tx(p2pkh_output) -> Transaction:
    """Two p2sh inputs, one p2wsh input and one p2pkh output."""
    return Transaction(
        inputs=(p2sh_input(0), p2sh_input(1), p2wsh_input(2)),
        outputs=(p2pkh_output,),
    )
