"""
Worst-case input weights derived from script and witness components.

An input serializes as

    outpoint (36) + compactSize(len(scriptSig)) + scriptSig + sequence (4)

in the base transaction, and as

    compactSize(len(witness)) + sum(compactSize(len(item)) + item)

in the witness section. Base bytes weigh 4 units, witness bytes weigh 1.
A legacy input inside a segwit transaction still has an empty witness stack,
encoded as a single 0x00, which we always count so the estimate holds for
mixed transactions.

The worst-case signatures used below:
    ECDSA  72 bytes (DER with low S plus sighash byte)
    Schnorr 64 bytes (SIGHASH_DEFAULT)
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence, Tuple

from utxo_vsize.script_sizes import compact_size_length, pushdata_encoding_length, var_slice_size
from utxo_vsize.virtual_sizes import InputKind

# outpoint (32 + 4) and sequence (4)
INPUT_BASE_SIZE = 40

ECDSA_SIGNATURE_SIZE = 72
SCHNORR_SIGNATURE_SIZE = 64
COMPRESSED_PUBKEY_SIZE = 33
X_ONLY_PUBKEY_SIZE = 32

# OP_2 <pubkey> <pubkey> <pubkey> OP_3 OP_CHECKMULTISIG
MULTISIG_2OF3_SCRIPT_SIZE = 1 + 3 * (1 + COMPRESSED_PUBKEY_SIZE) + 1 + 1
# <pubkey> OP_CHECKSIG
P2PK_SCRIPT_SIZE = 1 + COMPRESSED_PUBKEY_SIZE + 1
# <xonly> OP_CHECKSIGVERIFY <xonly> OP_CHECKSIG
TAPSCRIPT_2OF2_SIZE = 2 * (1 + X_ONLY_PUBKEY_SIZE + 1)
# OP_0 <32 byte hash>
P2WSH_PROGRAM_SIZE = 34


def _push(n: int) -> int:
    return pushdata_encoding_length(n) + n


def control_block_size(depth: int) -> int:
    """Control block for a tapscript leaf at `depth` in the script tree."""
    return 1 + X_ONLY_PUBKEY_SIZE + 32 * depth


@dataclass(frozen=True)
class InputComponents:
    """Serialized sizes of the scriptSig elements and witness items of an input.

    Attributes:
        script: Length of each scriptSig element, push opcode included
        witness: Length of each witness item, length prefix excluded
    """

    script: Tuple[int, ...] = ()
    witness: Tuple[int, ...] = ()


def get_witness_weight(witness: Sequence[int]) -> int:
    if not witness:
        return 1
    return compact_size_length(len(witness)) + sum(var_slice_size(n) for n in witness)


def get_input_components_weight(components: InputComponents) -> int:
    """Weight units of an input with the given components."""
    script_size = sum(components.script)
    base_size = INPUT_BASE_SIZE + var_slice_size(script_size)
    return 4 * base_size + get_witness_weight(components.witness)


def get_input_components_vsize(components: InputComponents) -> int:
    return math.ceil(get_input_components_weight(components) / 4)


def get_input_weight(script: bytes, witness: Sequence[bytes] = ()) -> int:
    """Weight units of a concrete input (scriptSig bytes and witness stack)."""
    base_size = INPUT_BASE_SIZE + var_slice_size(len(script))
    return 4 * base_size + get_witness_weight([len(item) for item in witness])


input_components_p2sh = InputComponents(
    # OP_0 <sig> <sig> <redeemScript>
    script=(1, _push(ECDSA_SIGNATURE_SIZE), _push(ECDSA_SIGNATURE_SIZE), _push(MULTISIG_2OF3_SCRIPT_SIZE)),
)

input_components_p2sh_p2wsh = InputComponents(
    script=(_push(P2WSH_PROGRAM_SIZE),),
    witness=(0, ECDSA_SIGNATURE_SIZE, ECDSA_SIGNATURE_SIZE, MULTISIG_2OF3_SCRIPT_SIZE),
)

input_components_p2wsh = InputComponents(
    witness=(0, ECDSA_SIGNATURE_SIZE, ECDSA_SIGNATURE_SIZE, MULTISIG_2OF3_SCRIPT_SIZE),
)

input_components_p2tr_keypath = InputComponents(
    witness=(SCHNORR_SIGNATURE_SIZE,),
)

input_components_p2tr_script_path_level1 = InputComponents(
    witness=(SCHNORR_SIGNATURE_SIZE, SCHNORR_SIGNATURE_SIZE, TAPSCRIPT_2OF2_SIZE, control_block_size(1)),
)

input_components_p2tr_script_path_level2 = InputComponents(
    witness=(SCHNORR_SIGNATURE_SIZE, SCHNORR_SIGNATURE_SIZE, TAPSCRIPT_2OF2_SIZE, control_block_size(2)),
)

input_components_p2sh_p2pk = InputComponents(
    # <sig> <redeemScript>
    script=(_push(ECDSA_SIGNATURE_SIZE), _push(P2PK_SCRIPT_SIZE)),
)

INPUT_COMPONENTS: Mapping[InputKind, InputComponents] = MappingProxyType(
    {
        InputKind.P2SH: input_components_p2sh,
        InputKind.P2SH_P2WSH: input_components_p2sh_p2wsh,
        InputKind.P2WSH: input_components_p2wsh,
        InputKind.P2TR_KEYPATH: input_components_p2tr_keypath,
        InputKind.P2TR_SCRIPT_PATH_LEVEL1: input_components_p2tr_script_path_level1,
        InputKind.P2TR_SCRIPT_PATH_LEVEL2: input_components_p2tr_script_path_level2,
        InputKind.P2SH_P2PK: input_components_p2sh_p2pk,
    }
)
