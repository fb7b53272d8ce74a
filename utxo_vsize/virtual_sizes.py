"""
Virtual size constants for signed inputs, outputs and transaction overhead.

All values are in vbytes (weight / 4, rounded up).
See https://bitcoincore.org/en/segwit_wallet_dev/#transaction-serialization

Input sizes are worst-case values for fully signed 2-of-3 multisig inputs
(single-signature for p2shP2pk). The component breakdown behind every value is
in `utxo_vsize.input_weights`; tests check the two agree.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping


class InputKind(str, Enum):
    """Spendable script patterns with a known worst-case signed size."""

    P2SH = "p2sh"
    P2SH_P2WSH = "p2shP2wsh"
    P2WSH = "p2wsh"
    P2TR_KEYPATH = "p2trKeypath"
    P2TR_SCRIPT_PATH_LEVEL1 = "p2trScriptPathLevel1"
    P2TR_SCRIPT_PATH_LEVEL2 = "p2trScriptPathLevel2"
    P2SH_P2PK = "p2shP2pk"


class OutputType(str, Enum):
    """Standard output script patterns."""

    P2SH = "p2sh"
    P2SH_P2WSH = "p2shP2wsh"
    P2WSH = "p2wsh"
    P2TR = "p2tr"
    P2PKH = "p2pkh"
    P2WPKH = "p2wpkh"


@dataclass(frozen=True)
class VirtualSizeTable:
    #
    # Input sizes
    #

    # Size of a P2PKH input with (un)compressed key
    # Source: https://bitcoin.stackexchange.com/questions/48279/how-big-is-the-input-of-a-p2pkh-transaction
    tx_p2pkh_input_size_compressed_key: int = 148
    tx_p2pkh_input_size_uncompressed_key: int = 180

    # Observed weights of signed 2-of-3 p2sh inputs:
    #   weight   1172   1184   1188
    #   share   0.270  0.496  0.234
    # The jump from 1172 to 1184 is the scriptSig length crossing 252 bytes,
    # which grows its compactSize prefix by 2 bytes. Worst case is 297 vbytes
    # in a legacy transaction; inside a segwit transaction the empty witness
    # stack adds one weight unit, which rounds up to 298.
    tx_p2sh_input_size: int = 298

    # Observed weights of signed 2-of-3 p2shP2wsh inputs:
    #   weight    556    557    558
    #   share   0.281  0.441  0.277
    # 558 / 4 = 139.5, rounded up.
    tx_p2sh_p2wsh_input_size: int = 140

    # Observed weights of signed 2-of-3 p2wsh inputs:
    #   weight    415    416    417    418
    #   share   0.002  0.246  0.503  0.249
    # 418 / 4 = 104.5, rounded up.
    tx_p2wsh_input_size: int = 105

    # Schnorr signatures have a fixed 64 byte length (SIGHASH_DEFAULT), so the
    # taproot sizes have no distribution.
    tx_p2tr_keypath_input_size: int = 58
    # 2-of-2 tapscript leaf, control block with one or two merkle path hashes
    tx_p2tr_script_path_level1_input_size: int = 108
    tx_p2tr_script_path_level2_input_size: int = 116

    # Single signature p2sh-wrapped p2pk
    tx_p2sh_p2pk_input_size: int = 151

    #
    # Output sizes
    #
    #   scriptLength + compactSize(scriptLength) + txOutputAmountSize
    #
    # compactSize(scriptLength) is 1 for all standard scripts, so this is
    # scriptLength + 9.

    tx_output_amount_size: int = 8

    tx_p2sh_output_size: int = 32
    tx_p2sh_p2wsh_output_size: int = 32
    tx_p2wsh_output_size: int = 43
    tx_p2tr_output_size: int = 43
    tx_p2pkh_output_size: int = 34
    tx_p2wpkh_output_size: int = 31

    #
    # Transaction overhead
    #

    # version (4) + input count (1) + output count (1) + locktime (4)
    tx_overhead_size: int = 10
    # Marker and flag are witness data and add 2 weight units, rounded up to
    # one vbyte.
    tx_seg_overhead_vsize: int = 11


VIRTUAL_SIZES = VirtualSizeTable()

INPUT_VSIZES: Mapping[InputKind, int] = MappingProxyType(
    {
        InputKind.P2SH: VIRTUAL_SIZES.tx_p2sh_input_size,
        InputKind.P2SH_P2WSH: VIRTUAL_SIZES.tx_p2sh_p2wsh_input_size,
        InputKind.P2WSH: VIRTUAL_SIZES.tx_p2wsh_input_size,
        InputKind.P2TR_KEYPATH: VIRTUAL_SIZES.tx_p2tr_keypath_input_size,
        InputKind.P2TR_SCRIPT_PATH_LEVEL1: VIRTUAL_SIZES.tx_p2tr_script_path_level1_input_size,
        InputKind.P2TR_SCRIPT_PATH_LEVEL2: VIRTUAL_SIZES.tx_p2tr_script_path_level2_input_size,
        InputKind.P2SH_P2PK: VIRTUAL_SIZES.tx_p2sh_p2pk_input_size,
    }
)

# Input kinds that carry witness data
SEGWIT_INPUT_KINDS: FrozenSet[InputKind] = frozenset(
    {
        InputKind.P2SH_P2WSH,
        InputKind.P2WSH,
        InputKind.P2TR_KEYPATH,
        InputKind.P2TR_SCRIPT_PATH_LEVEL1,
        InputKind.P2TR_SCRIPT_PATH_LEVEL2,
    }
)

OUTPUT_SCRIPT_LENGTHS: Mapping[OutputType, int] = MappingProxyType(
    {
        OutputType.P2SH: 23,
        OutputType.P2SH_P2WSH: 23,
        OutputType.P2WSH: 34,
        OutputType.P2TR: 34,
        OutputType.P2PKH: 25,
        OutputType.P2WPKH: 22,
    }
)

OUTPUT_VSIZES: Mapping[OutputType, int] = MappingProxyType(
    {
        OutputType.P2SH: VIRTUAL_SIZES.tx_p2sh_output_size,
        OutputType.P2SH_P2WSH: VIRTUAL_SIZES.tx_p2sh_p2wsh_output_size,
        OutputType.P2WSH: VIRTUAL_SIZES.tx_p2wsh_output_size,
        OutputType.P2TR: VIRTUAL_SIZES.tx_p2tr_output_size,
        OutputType.P2PKH: VIRTUAL_SIZES.tx_p2pkh_output_size,
        OutputType.P2WPKH: VIRTUAL_SIZES.tx_p2wpkh_output_size,
    }
)
