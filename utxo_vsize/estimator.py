"""
Derive Dimensions from transaction inputs, outputs and unspents.

Inputs are classified by the shape of their scriptSig and witness:

    script  witness   kind
    empty   one item  p2trKeypath
    empty   tapscript p2trScriptPathLevel1 / p2trScriptPathLevel2
    empty   other     p2wsh
    set     set       p2shP2wsh
    set     empty     p2sh
    empty   empty     ambiguous (unsigned), needs an AssumeUnsigned policy

All functions are pure and return new Dimensions values.
"""

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import List, Optional, Sequence, Union

from utxo_vsize.codes import AddressType, ChainCode, classify
from utxo_vsize.dimensions import Dimensions, OutputDimensions
from utxo_vsize.errors import (
    AmbiguousInputError,
    InvalidAssumptionError,
    UnsupportedChainError,
    ValidationError,
)
from utxo_vsize.script_sizes import compact_size_length
from utxo_vsize.virtual_sizes import (
    OUTPUT_SCRIPT_LENGTHS,
    VIRTUAL_SIZES,
    InputKind,
    OutputType,
)

logger = logging.getLogger(__name__)

BYTES_LIKE = (bytes, bytearray, memoryview)


class AssumeUnsigned(str, Enum):
    """Policy for inputs that carry neither script nor witness yet."""

    P2SH = "assume-p2sh"
    P2SH_P2WSH = "assume-p2sh-p2wsh"
    P2WSH = "assume-p2wsh"
    P2TR_KEYPATH = "assume-p2tr-keypath"
    P2TR_SCRIPT_PATH_LEVEL1 = "assume-p2tr-script-path-level1"
    P2TR_SCRIPT_PATH_LEVEL2 = "assume-p2tr-script-path-level2"
    P2SH_P2PK = "assume-p2sh-p2pk"


ASSUMED_INPUT_KINDS = MappingProxyType(
    {
        AssumeUnsigned.P2SH: InputKind.P2SH,
        AssumeUnsigned.P2SH_P2WSH: InputKind.P2SH_P2WSH,
        AssumeUnsigned.P2WSH: InputKind.P2WSH,
        AssumeUnsigned.P2TR_KEYPATH: InputKind.P2TR_KEYPATH,
        AssumeUnsigned.P2TR_SCRIPT_PATH_LEVEL1: InputKind.P2TR_SCRIPT_PATH_LEVEL1,
        AssumeUnsigned.P2TR_SCRIPT_PATH_LEVEL2: InputKind.P2TR_SCRIPT_PATH_LEVEL2,
        AssumeUnsigned.P2SH_P2PK: InputKind.P2SH_P2PK,
    }
)

# Unspents on p2tr chains are spent through the 2-of-2 script path at depth 1
UNSPENT_INPUT_KINDS = MappingProxyType(
    {
        AddressType.P2SH: InputKind.P2SH,
        AddressType.P2SH_P2WSH: InputKind.P2SH_P2WSH,
        AddressType.P2WSH: InputKind.P2WSH,
        AddressType.P2TR: InputKind.P2TR_SCRIPT_PATH_LEVEL1,
    }
)

if set(ASSUMED_INPUT_KINDS) != set(AssumeUnsigned) or set(ASSUMED_INPUT_KINDS.values()) != set(InputKind):
    raise ValueError("AssumeUnsigned must have exactly one member per InputKind")

SINGLE_INPUT = MappingProxyType({kind: Dimensions.from_counts({kind: 1}) for kind in InputKind})

TAPSCRIPT_LEAF_MASK = 0xFE
TAPSCRIPT_LEAF_VERSION = 0xC0
CONTROL_BLOCK_BASE_SIZE = 33
TAPROOT_NODE_SIZE = 32

_SCRIPT_PATH_KINDS = {
    1: InputKind.P2TR_SCRIPT_PATH_LEVEL1,
    2: InputKind.P2TR_SCRIPT_PATH_LEVEL2,
}


def output_vsize_for_script_length(length: int) -> int:
    """
    Vsize of an output with a locking script of `length` bytes.

    Args:
        length: Script length in bytes

    Returns:
        int: length + compactSize(length) + amount field size
    """
    return length + compact_size_length(length) + VIRTUAL_SIZES.tx_output_amount_size


def output_script_length_for_chain(chain: ChainCode) -> int:
    """Script length of an output paying to an address on `chain`."""
    address_type, _ = classify(chain)
    return OUTPUT_SCRIPT_LENGTHS[OutputType(address_type.value)]


def dimensions_for_output_script_length(length: int) -> Dimensions:
    return Dimensions(outputs=OutputDimensions(count=1, size=output_vsize_for_script_length(length)))


def _output_script(output) -> bytes:
    if isinstance(output, BYTES_LIKE):
        return output
    script = getattr(output, "script", None)
    if not isinstance(script, BYTES_LIKE):
        raise ValidationError(f"expected output script to be bytes, got {type(script).__name__}")
    return script


def dimensions_for_output(script) -> Dimensions:
    """
    Dimensions of a single output.

    Args:
        script: Locking script bytes, or an output with a `script` attribute

    Returns:
        Dimensions with one output
    """
    return dimensions_for_output_script_length(len(_output_script(script)))


def dimensions_for_outputs(outputs: Iterable) -> Dimensions:
    if not isinstance(outputs, Iterable) or isinstance(outputs, (bytes, bytearray, str)):
        raise ValidationError("outputs must be a sequence of outputs")
    return Dimensions.sum(*(dimensions_for_output(output) for output in outputs))


def dimensions_for_output_on_chain(chain: ChainCode) -> Dimensions:
    """Dimensions of a single output paying to an address on `chain`."""
    return dimensions_for_output_script_length(output_script_length_for_chain(chain))


def dimensions_for_output_type(output_type: Union[OutputType, str]) -> Dimensions:
    try:
        output_type = OutputType(output_type)
    except ValueError as e:
        raise ValidationError(f"unknown output type {output_type!r}") from e
    return dimensions_for_output_script_length(OUTPUT_SCRIPT_LENGTHS[output_type])


SINGLE_OUTPUT = MappingProxyType({output_type: dimensions_for_output_type(output_type) for output_type in OutputType})


def _assumed_kind(assume_unsigned) -> InputKind:
    if not isinstance(assume_unsigned, AssumeUnsigned):
        try:
            assume_unsigned = AssumeUnsigned(assume_unsigned)
        except (ValueError, TypeError) as e:
            raise InvalidAssumptionError(assume_unsigned) from e
    return ASSUMED_INPUT_KINDS[assume_unsigned]


def _script_path_depth(item: bytes) -> Optional[int]:
    """Merkle path depth if `item` is a tapscript control block."""
    if len(item) < CONTROL_BLOCK_BASE_SIZE or (len(item) - CONTROL_BLOCK_BASE_SIZE) % TAPROOT_NODE_SIZE:
        return None
    if item[0] & TAPSCRIPT_LEAF_MASK != TAPSCRIPT_LEAF_VERSION:
        return None
    return (len(item) - CONTROL_BLOCK_BASE_SIZE) // TAPROOT_NODE_SIZE


def _classify_witness(witness: Sequence[bytes], index) -> InputKind:
    if len(witness) == 1:
        return InputKind.P2TR_KEYPATH

    # p2wsh multisig witnesses start with the empty CHECKMULTISIG dummy
    depth = _script_path_depth(witness[-1]) if witness[0] else None
    if depth is None:
        return InputKind.P2WSH

    try:
        return _SCRIPT_PATH_KINDS[depth]
    except KeyError as e:
        raise ValidationError(f"input {index}: unsupported taproot script path depth {depth}") from e


def _input_field(tx_input, name: str):
    if isinstance(tx_input, Mapping):
        return tx_input.get(name)
    return getattr(tx_input, name, None)


def _input_script(tx_input, index) -> bytes:
    script = _input_field(tx_input, "script")
    if script is None:
        return b""
    if not isinstance(script, BYTES_LIKE):
        raise ValidationError(f"input {index}: expected script to be bytes, got {type(script).__name__}")
    return script


def _input_witness(tx_input, index) -> List[bytes]:
    witness = _input_field(tx_input, "witness")
    if witness is None:
        return []
    if not isinstance(witness, Iterable) or isinstance(witness, (BYTES_LIKE, str)):
        raise ValidationError(f"input {index}: witness must be a sequence of stack items")
    witness = list(witness)
    if not all(isinstance(item, BYTES_LIKE) for item in witness):
        raise ValidationError(f"input {index}: expected witness items to be bytes")
    return witness


def dimensions_for_input(tx_input, assume_unsigned: Optional[AssumeUnsigned] = None) -> Dimensions:
    """
    Dimensions of a single transaction input.

    Args:
        tx_input: Input with `index`, `script` and `witness` attributes or keys
        assume_unsigned: Input kind to assume for inputs without script and witness

    Returns:
        Dimensions with one input

    Raises:
        AmbiguousInputError: If the input is unsigned and no assumption is given
        InvalidAssumptionError: If `assume_unsigned` is not an AssumeUnsigned value
        ValidationError: If the input is not an input or its script or witness is not bytes
    """
    if not isinstance(tx_input, Mapping) and not (hasattr(tx_input, "script") or hasattr(tx_input, "witness")):
        raise ValidationError(f"expected transaction input, got {type(tx_input).__name__}")

    index = _input_field(tx_input, "index")
    script = _input_script(tx_input, index)
    witness = _input_witness(tx_input, index)

    if script:
        kind = InputKind.P2SH_P2WSH if witness else InputKind.P2SH
    elif witness:
        kind = _classify_witness(witness, index)
    elif assume_unsigned is None:
        logger.debug(f"input {index} has neither script nor witness")
        raise AmbiguousInputError(index)
    else:
        kind = _assumed_kind(assume_unsigned)
        logger.debug(f"input {index} is unsigned, assuming {kind.value}")

    return SINGLE_INPUT[kind]


def dimensions_for_inputs(inputs: Iterable, assume_unsigned: Optional[AssumeUnsigned] = None) -> Dimensions:
    if not isinstance(inputs, Iterable) or isinstance(inputs, (bytes, bytearray, str)):
        raise ValidationError("inputs must be a sequence of inputs")
    return Dimensions.sum(*(dimensions_for_input(tx_input, assume_unsigned) for tx_input in inputs))


def _unspent_chain(unspent) -> ChainCode:
    if isinstance(unspent, Mapping):
        return unspent.get("chain")
    if isinstance(unspent, int):
        return unspent
    return getattr(unspent, "chain", None)


def dimensions_for_unspent(unspent) -> Dimensions:
    """
    Dimensions of an unspent, by its chain code.

    Args:
        unspent: Chain code, or an unspent with a `chain` attribute or key

    Returns:
        Dimensions with one input

    Raises:
        InvalidCodeError: If the chain code is invalid
        UnsupportedChainError: If the chain's address type cannot be spent
    """
    chain = _unspent_chain(unspent)
    address_type, _ = classify(chain)
    kind = UNSPENT_INPUT_KINDS.get(address_type)
    if kind is None:
        logger.debug(f"no input kind for chain {chain} ({address_type.value})")
        raise UnsupportedChainError(chain, address_type.value)
    return SINGLE_INPUT[kind]


def dimensions_for_unspents(unspents: Iterable) -> Dimensions:
    if not isinstance(unspents, Iterable) or isinstance(unspents, (bytes, bytearray, str)):
        raise ValidationError("unspents must be a sequence of unspents")
    return Dimensions.sum(*(dimensions_for_unspent(unspent) for unspent in unspents))


def dimensions_for_transaction(tx, assume_unsigned: Optional[AssumeUnsigned] = None) -> Dimensions:
    """
    Dimensions of a whole transaction.

    Args:
        tx: Transaction with `inputs` and `outputs` attributes
        assume_unsigned: Input kind to assume for unsigned inputs

    Returns:
        Sum of the input and output dimensions
    """
    return dimensions_for_inputs(tx.inputs, assume_unsigned).plus(dimensions_for_outputs(tx.outputs))
