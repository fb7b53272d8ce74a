"""
Tests for deriving Dimensions from inputs, outputs, unspents and transactions.
"""

import logging
from types import MappingProxyType, SimpleNamespace

import pytest

from conftest import (
    ECDSA_SIG,
    MULTISIG_SCRIPT,
    SCHNORR_SIG,
    p2sh_input,
    p2sh_p2wsh_input,
    p2tr_keypath_input,
    p2tr_script_path_input,
    p2wsh_input,
    unsigned_input,
)
from utxo_vsize import codes, estimator
from utxo_vsize.codes import AddressType, Purpose
from utxo_vsize.dimensions import Dimensions, OutputDimensions
from utxo_vsize.errors import (
    AmbiguousInputError,
    InvalidAssumptionError,
    InvalidCodeError,
    UnsupportedChainError,
    ValidationError,
)
from utxo_vsize.estimator import (
    SINGLE_INPUT,
    SINGLE_OUTPUT,
    AssumeUnsigned,
    dimensions_for_input,
    dimensions_for_inputs,
    dimensions_for_output,
    dimensions_for_output_on_chain,
    dimensions_for_output_script_length,
    dimensions_for_outputs,
    dimensions_for_transaction,
    dimensions_for_unspent,
    dimensions_for_unspents,
    output_script_length_for_chain,
    output_vsize_for_script_length,
)
from utxo_vsize.models import Transaction, TxInput, TxOutput
from utxo_vsize.virtual_sizes import OUTPUT_VSIZES, VIRTUAL_SIZES, InputKind


class TestOutputs:
    """Output sizes from script lengths"""

    @pytest.mark.parametrize(
        "length,expected",
        [
            (0, 9),
            (22, 31),
            (25, 34),
            (252, 252 + 1 + 8),
            (253, 253 + 3 + 8),
            (0xFFFF, 0xFFFF + 3 + 8),
            (0x10000, 0x10000 + 5 + 8),
        ],
    )
    def test_output_vsize_for_script_length(self, length, expected):
        assert output_vsize_for_script_length(length) == expected

    def test_compact_size_boundary(self):
        assert output_vsize_for_script_length(252) == 261
        assert output_vsize_for_script_length(253) == 264

    @pytest.mark.parametrize("length", [-1, 2.5, None])
    def test_rejects_invalid_script_length(self, length):
        with pytest.raises(ValidationError):
            output_vsize_for_script_length(length)

    def test_dimensions_for_output(self, p2pkh_output):
        expected = Dimensions(outputs=OutputDimensions(count=1, size=34))
        assert dimensions_for_output(p2pkh_output.script) == expected
        assert dimensions_for_output(bytearray(25)) == expected
        assert dimensions_for_output(p2pkh_output) == expected
        assert dimensions_for_output_script_length(25) == expected

    @pytest.mark.parametrize("output", [None, "76a914", 25, SimpleNamespace(script=None)])
    def test_dimensions_for_output_rejects_non_bytes(self, output):
        with pytest.raises(ValidationError):
            dimensions_for_output(output)

    def test_dimensions_for_outputs(self):
        outputs = [TxOutput(script=bytes(25)), TxOutput(script=bytes(34)), bytes(23)]
        assert dimensions_for_outputs(outputs) == Dimensions(outputs=OutputDimensions(count=3, size=34 + 43 + 32))
        assert dimensions_for_outputs([]) == Dimensions.zero()
        with pytest.raises(ValidationError):
            dimensions_for_outputs(bytes(25))

    def test_single_output_sizes(self):
        for output_type, dims in SINGLE_OUTPUT.items():
            assert dims.n_outputs == 1
            assert dims.get_outputs_vsize() == OUTPUT_VSIZES[output_type]

    def test_dimensions_for_output_type_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            estimator.dimensions_for_output_type("p2pk")

    @pytest.mark.parametrize(
        "chain,length",
        [(0, 23), (1, 23), (10, 23), (11, 23), (20, 34), (21, 34), (30, 34), (31, 34)],
    )
    def test_output_script_length_for_chain(self, chain, length):
        assert output_script_length_for_chain(chain) == length
        assert dimensions_for_output_on_chain(chain).get_outputs_vsize() == length + 9

    def test_output_on_invalid_chain(self):
        with pytest.raises(InvalidCodeError):
            dimensions_for_output_on_chain(42)


class TestInputs:
    """Input classification"""

    @pytest.mark.parametrize(
        "tx_input,kind",
        [
            (p2sh_input(), InputKind.P2SH),
            (p2sh_p2wsh_input(), InputKind.P2SH_P2WSH),
            (p2wsh_input(), InputKind.P2WSH),
            (p2tr_keypath_input(), InputKind.P2TR_KEYPATH),
            (p2tr_script_path_input(depth=1), InputKind.P2TR_SCRIPT_PATH_LEVEL1),
            (p2tr_script_path_input(depth=2), InputKind.P2TR_SCRIPT_PATH_LEVEL2),
        ],
    )
    def test_classifies_signed_inputs(self, tx_input, kind):
        dims = dimensions_for_input(tx_input)
        assert dims == Dimensions.from_counts({kind: 1})
        assert dims.n_inputs == 1
        assert dims.n_outputs == 0

    def test_signed_inputs_ignore_assumption(self):
        assert dimensions_for_input(p2sh_input(), AssumeUnsigned.P2WSH) == SINGLE_INPUT[InputKind.P2SH]

    def test_witness_program_control_block_needs_signature_first(self):
        """An empty first witness item is the multisig dummy, not a tapscript argument."""
        control_block = bytes([0xC1]) + bytes(64)
        tx_input = TxInput(index=0, witness=(b"", bytes(72), bytes(72), control_block))
        assert dimensions_for_input(tx_input) == SINGLE_INPUT[InputKind.P2WSH]

    @pytest.mark.parametrize("depth", [0, 3])
    def test_unsupported_script_path_depth(self, depth):
        with pytest.raises(ValidationError, match="script path depth"):
            dimensions_for_input(p2tr_script_path_input(depth=depth))

    def test_unsigned_input_is_ambiguous(self):
        with pytest.raises(AmbiguousInputError, match="illegal input 3"):
            dimensions_for_input(unsigned_input(3))

    @pytest.mark.parametrize("assumption", list(AssumeUnsigned))
    def test_assumptions(self, assumption):
        kind = estimator.ASSUMED_INPUT_KINDS[assumption]
        assert dimensions_for_input(unsigned_input(), assumption) == SINGLE_INPUT[kind]

    def test_assumption_by_value(self):
        assert dimensions_for_input(unsigned_input(), "assume-p2wsh") == SINGLE_INPUT[InputKind.P2WSH]

    @pytest.mark.parametrize("assumption", ["p2sh", "bogus", 3, object(), InputKind.P2SH, [1]])
    def test_invalid_assumptions(self, assumption):
        with pytest.raises(InvalidAssumptionError):
            dimensions_for_input(unsigned_input(), assumption)

    def test_one_assumption_per_input_kind(self):
        assert sorted(estimator.ASSUMED_INPUT_KINDS.values()) == sorted(InputKind)
        assert len(AssumeUnsigned) == len(InputKind)

    def test_duck_typed_input(self):
        tx_input = SimpleNamespace(index=0, script=None, witness=[bytes(64)])
        assert dimensions_for_input(tx_input) == SINGLE_INPUT[InputKind.P2TR_KEYPATH]

    @pytest.mark.parametrize(
        "tx_input,kind",
        [
            ({"index": 0, "script": bytes(254), "witness": []}, InputKind.P2SH),
            (
                {"index": 0, "script": bytes(35), "witness": [b"", ECDSA_SIG, ECDSA_SIG, MULTISIG_SCRIPT]},
                InputKind.P2SH_P2WSH,
            ),
            ({"index": 0, "witness": [SCHNORR_SIG]}, InputKind.P2TR_KEYPATH),
        ],
    )
    def test_mapping_input(self, tx_input, kind):
        assert dimensions_for_input(tx_input) == SINGLE_INPUT[kind]

    def test_unsigned_mapping_input(self):
        with pytest.raises(AmbiguousInputError, match="illegal input 4"):
            dimensions_for_input({"index": 4, "script": b"", "witness": []})
        assert dimensions_for_input({"index": 4}, AssumeUnsigned.P2WSH) == SINGLE_INPUT[InputKind.P2WSH]

    @pytest.mark.parametrize(
        "tx_input",
        [
            TxInput(index=0, script="0014abcd"),
            {"index": 0, "script": 254},
            TxInput(index=0, witness=bytes(64)),
            TxInput(index=0, witness=("00" * 64,)),
            {"index": 0, "witness": [SCHNORR_SIG, None]},
            5,
            "input",
        ],
    )
    def test_rejects_malformed_input(self, tx_input):
        with pytest.raises(ValidationError):
            dimensions_for_input(tx_input, AssumeUnsigned.P2SH)

    def test_dimensions_for_inputs(self):
        inputs = [p2sh_input(0), p2wsh_input(1), unsigned_input(2)]
        with pytest.raises(AmbiguousInputError):
            dimensions_for_inputs(inputs)
        dims = dimensions_for_inputs(inputs, AssumeUnsigned.P2SH_P2WSH)
        assert dims == Dimensions(n_p2sh_inputs=1, n_p2wsh_inputs=1, n_p2sh_p2wsh_inputs=1)
        with pytest.raises(ValidationError):
            dimensions_for_inputs(None)

    def test_logs_assumption(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="utxo_vsize.estimator"):
            dimensions_for_input(unsigned_input(5), AssumeUnsigned.P2SH)
        assert "input 5 is unsigned, assuming p2sh" in caplog.text


class TestUnspents:
    """Unspent classification by chain code"""

    @pytest.mark.parametrize(
        "address_type,kind",
        [
            (AddressType.P2SH, InputKind.P2SH),
            (AddressType.P2SH_P2WSH, InputKind.P2SH_P2WSH),
            (AddressType.P2WSH, InputKind.P2WSH),
            (AddressType.P2TR, InputKind.P2TR_SCRIPT_PATH_LEVEL1),
        ],
    )
    def test_determines_unspent_size_according_to_chain(self, address_type, kind):
        for chain in codes.codes_for_address_type(address_type):
            assert dimensions_for_unspent(chain) == Dimensions.from_counts({kind: 1})
            assert dimensions_for_unspent({"chain": chain}) == Dimensions.from_counts({kind: 1})
            assert dimensions_for_unspent(SimpleNamespace(chain=chain)) == Dimensions.from_counts({kind: 1})

    @pytest.mark.parametrize("purpose", list(Purpose))
    def test_every_code_of_a_purpose_is_spendable(self, purpose):
        for chain in codes.codes_for_purpose(purpose):
            dims = dimensions_for_unspent(chain)
            assert dims.n_inputs == 1
            address_type, _ = codes.classify(chain)
            assert dims.counts[estimator.UNSPENT_INPUT_KINDS[address_type]] == 1

    def test_dimensions_for_unspents(self):
        unspents = [{"chain": chain} for chain in codes.ALL_CODES]
        assert dimensions_for_unspents(unspents) == Dimensions(
            n_p2sh_inputs=2,
            n_p2sh_p2wsh_inputs=2,
            n_p2wsh_inputs=2,
            n_p2tr_script_path_level1_inputs=2,
        )

    @pytest.mark.parametrize("unspent", [42, -1, None, {"chain": 2}, {}, SimpleNamespace(chain="0"), True])
    def test_invalid_chain(self, unspent):
        with pytest.raises(InvalidCodeError):
            dimensions_for_unspent(unspent)

    def test_unsupported_chain(self, monkeypatch):
        kinds = {k: v for k, v in estimator.UNSPENT_INPUT_KINDS.items() if k != AddressType.P2TR}
        monkeypatch.setattr(estimator, "UNSPENT_INPUT_KINDS", MappingProxyType(kinds))

        assert dimensions_for_unspent(20) == SINGLE_INPUT[InputKind.P2WSH]
        with pytest.raises(UnsupportedChainError, match="unsupported chain 30"):
            dimensions_for_unspent(30)


class TestTransactions:
    """End-to-end estimates"""

    def test_unsigned_transaction(self, unsigned_tx):
        with pytest.raises(AmbiguousInputError):
            dimensions_for_transaction(unsigned_tx)

        dims = dimensions_for_transaction(unsigned_tx, AssumeUnsigned.P2SH)
        assert dims == Dimensions(n_p2sh_inputs=1, outputs=OutputDimensions(count=1, size=34))
        assert dims.n_p2sh_inputs == 1
        assert not dims.is_segwit()
        assert dims.get_overhead_vsize() == 10
        assert dims.get_vsize() == 10 + VIRTUAL_SIZES.tx_p2sh_input_size + 34

    def test_signed_transaction(self, signed_tx):
        dims = dimensions_for_transaction(signed_tx)
        assert dims == Dimensions(n_p2sh_inputs=2, n_p2wsh_inputs=1, outputs=OutputDimensions(count=1, size=34))
        assert dims.is_segwit()
        assert dims.get_overhead_vsize() == VIRTUAL_SIZES.tx_seg_overhead_vsize
        assert dims.get_overhead_vsize() != VIRTUAL_SIZES.tx_overhead_size
        assert dims.get_inputs_vsize() == 2 * VIRTUAL_SIZES.tx_p2sh_input_size + VIRTUAL_SIZES.tx_p2wsh_input_size

    def test_unsigned_matches_signed_estimate(self, p2pkh_output):
        """Assuming the right kind gives the same estimate as after signing."""
        builders = {
            AssumeUnsigned.P2SH: p2sh_input,
            AssumeUnsigned.P2SH_P2WSH: p2sh_p2wsh_input,
            AssumeUnsigned.P2WSH: p2wsh_input,
            AssumeUnsigned.P2TR_KEYPATH: p2tr_keypath_input,
            AssumeUnsigned.P2TR_SCRIPT_PATH_LEVEL1: p2tr_script_path_input,
        }
        for assumption, build in builders.items():
            unsigned = Transaction(inputs=(unsigned_input(0), unsigned_input(1)), outputs=(p2pkh_output,))
            signed = Transaction(inputs=(build(0), build(1)), outputs=(p2pkh_output,))
            assert dimensions_for_transaction(unsigned, assumption) == dimensions_for_transaction(signed)

    def test_empty_transaction(self):
        assert dimensions_for_transaction(Transaction()) == Dimensions.zero()
