"""
utxo_vsize - virtual size estimation for unsigned Bitcoin transactions

Provides:
- Dimensions: immutable input counts and output aggregate with vsize getters
- VIRTUAL_SIZES: worst-case vsize constants for inputs, outputs and overhead
- codes: chain code registry (address type and purpose of derived keys)
- estimator functions deriving Dimensions from inputs, outputs and unspents
"""

import logging

from utxo_vsize import codes
from utxo_vsize.dimensions import Dimensions, OutputDimensions
from utxo_vsize.errors import (
    AmbiguousInputError,
    DimensionsError,
    InvalidAssumptionError,
    InvalidCodeError,
    UnsupportedChainError,
    ValidationError,
)
from utxo_vsize.estimator import (
    SINGLE_OUTPUT,
    AssumeUnsigned,
    dimensions_for_input,
    dimensions_for_inputs,
    dimensions_for_output,
    dimensions_for_output_on_chain,
    dimensions_for_output_script_length,
    dimensions_for_output_type,
    dimensions_for_outputs,
    dimensions_for_transaction,
    dimensions_for_unspent,
    dimensions_for_unspents,
    output_script_length_for_chain,
    output_vsize_for_script_length,
)
from utxo_vsize.fees import fee_for_dimensions, fee_for_vsize
from utxo_vsize.models import Transaction, TxInput, TxOutput
from utxo_vsize.virtual_sizes import VIRTUAL_SIZES, InputKind, OutputType

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "codes",
    # Dimensions
    "Dimensions",
    "OutputDimensions",
    "InputKind",
    "OutputType",
    "VIRTUAL_SIZES",
    # Estimator
    "AssumeUnsigned",
    "SINGLE_OUTPUT",
    "dimensions_for_input",
    "dimensions_for_inputs",
    "dimensions_for_output",
    "dimensions_for_output_on_chain",
    "dimensions_for_output_script_length",
    "dimensions_for_output_type",
    "dimensions_for_outputs",
    "dimensions_for_transaction",
    "dimensions_for_unspent",
    "dimensions_for_unspents",
    "output_script_length_for_chain",
    "output_vsize_for_script_length",
    # Fees
    "fee_for_dimensions",
    "fee_for_vsize",
    # Transaction descriptors
    "Transaction",
    "TxInput",
    "TxOutput",
    # Errors
    "DimensionsError",
    "InvalidCodeError",
    "UnsupportedChainError",
    "AmbiguousInputError",
    "InvalidAssumptionError",
    "ValidationError",
]
