"""
Transaction dimensions for vsize estimation.

A `Dimensions` value counts the inputs of each kind and aggregates the outputs
of a (possibly unsigned) transaction. The estimated vsize of the signed
transaction is the sum of

    - the overhead vsize (`get_overhead_vsize()`)
    - the inputs vsize (`get_inputs_vsize()`)
    - the outputs vsize (`get_outputs_vsize()`)

Values are immutable: `plus`, `times` and `sum` always return new instances.
"""

from types import MappingProxyType
from typing import Annotated, Any, Mapping, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from utxo_vsize.errors import ValidationError
from utxo_vsize.virtual_sizes import INPUT_VSIZES, SEGWIT_INPUT_KINDS, VIRTUAL_SIZES, InputKind

Count = Annotated[int, Field(strict=True, ge=0)]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except pydantic.ValidationError as e:
            raise ValidationError(f"invalid {type(self).__name__}: {e}") from e


class OutputDimensions(_FrozenModel):
    """A collection of outputs, represented by their count and aggregate vsize."""

    count: Count = Field(default=0, description="Number of outputs")
    size: Count = Field(default=0, description="Aggregate vsize of the outputs")

    @model_validator(mode="after")
    def validate_count_matches_size(self):
        """Count is zero iff size is zero."""
        if (self.count == 0) != (self.size == 0):
            raise ValueError(f"count ({self.count}) and size ({self.size}) must both be zero or both be positive")
        return self


# Field holding the count of each input kind
INPUT_COUNT_FIELDS: Mapping[InputKind, str] = MappingProxyType(
    {
        InputKind.P2SH: "n_p2sh_inputs",
        InputKind.P2SH_P2WSH: "n_p2sh_p2wsh_inputs",
        InputKind.P2WSH: "n_p2wsh_inputs",
        InputKind.P2TR_KEYPATH: "n_p2tr_keypath_inputs",
        InputKind.P2TR_SCRIPT_PATH_LEVEL1: "n_p2tr_script_path_level1_inputs",
        InputKind.P2TR_SCRIPT_PATH_LEVEL2: "n_p2tr_script_path_level2_inputs",
        InputKind.P2SH_P2PK: "n_p2sh_p2pk_inputs",
    }
)


class Dimensions(_FrozenModel):
    """Input counts and output aggregate of a transaction."""

    n_p2sh_inputs: Count = 0
    n_p2sh_p2wsh_inputs: Count = 0
    n_p2wsh_inputs: Count = 0
    n_p2tr_keypath_inputs: Count = 0
    n_p2tr_script_path_level1_inputs: Count = 0
    n_p2tr_script_path_level2_inputs: Count = 0
    n_p2sh_p2pk_inputs: Count = 0
    outputs: OutputDimensions = Field(default_factory=OutputDimensions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dimensions):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def _key(self):
        return tuple(self.counts.values()) + (self.outputs.count, self.outputs.size)

    @classmethod
    def zero(cls) -> "Dimensions":
        """Dimensions where every count and the output aggregate are 0."""
        return ZERO

    @classmethod
    def from_counts(
        cls, counts: Mapping[InputKind, int], outputs: Optional[OutputDimensions] = None
    ) -> "Dimensions":
        try:
            fields = {INPUT_COUNT_FIELDS[InputKind(kind)]: n for kind, n in counts.items()}
        except ValueError as e:
            raise ValidationError(f"unknown input kind in {dict(counts)!r}") from e
        return cls(**fields, outputs=outputs if outputs is not None else OutputDimensions())

    @classmethod
    def sum(cls, *parts: "PartialDimensions") -> "Dimensions":
        """
        Left fold of `plus` starting from `zero()`.

        Args:
            *parts: Dimensions or partial dimension mappings

        Returns:
            Dimensions: Sum of all parts, `zero()` if none are given
        """
        result = ZERO
        for part in parts:
            result = result.plus(part)
        return result

    @property
    def counts(self) -> Mapping[InputKind, int]:
        """Number of inputs of each kind."""
        return MappingProxyType({kind: getattr(self, field) for kind, field in INPUT_COUNT_FIELDS.items()})

    @property
    def n_inputs(self) -> int:
        """Total number of inputs of all kinds."""
        return sum(self.counts.values())

    @property
    def n_outputs(self) -> int:
        """Total number of outputs."""
        return self.outputs.count

    def plus(self, other: "PartialDimensions") -> "Dimensions":
        """
        Add dimensions component-wise.

        Args:
            other: Dimensions or a mapping with any subset of the fields.
                Missing fields count as 0.

        Returns:
            Dimensions: New dimensions with `other` added

        Raises:
            ValidationError: If `other` is malformed
        """
        other = _as_dimensions(other)
        counts = {field: getattr(self, field) + getattr(other, field) for field in INPUT_COUNT_FIELDS.values()}
        outputs = OutputDimensions(
            count=self.outputs.count + other.outputs.count,
            size=self.outputs.size + other.outputs.size,
        )
        return Dimensions(**counts, outputs=outputs)

    def times(self, factor: int) -> "Dimensions":
        """Multiply all counts and the output aggregate by a non-negative integer."""
        if not isinstance(factor, int) or isinstance(factor, bool) or factor < 0:
            raise ValidationError(f"expected factor to be a non-negative integer, got {factor!r}")
        counts = {field: getattr(self, field) * factor for field in INPUT_COUNT_FIELDS.values()}
        outputs = OutputDimensions(count=self.outputs.count * factor, size=self.outputs.size * factor)
        return Dimensions(**counts, outputs=outputs)

    def is_segwit(self) -> bool:
        """True iff there is at least one input with witness data."""
        return any(self.counts[kind] > 0 for kind in SEGWIT_INPUT_KINDS)

    def get_overhead_vsize(self) -> int:
        if self.is_segwit():
            return VIRTUAL_SIZES.tx_seg_overhead_vsize
        return VIRTUAL_SIZES.tx_overhead_size

    def get_inputs_vsize(self) -> int:
        """Vsize of the inputs, without transaction overhead."""
        return sum(n * INPUT_VSIZES[kind] for kind, n in self.counts.items())

    def get_outputs_vsize(self) -> int:
        """Vsize of the outputs, without transaction overhead."""
        return self.outputs.size

    def get_vsize(self) -> int:
        """
        Estimated vsize of the signed transaction.

        Returns:
            int: overhead + inputs + outputs vsize
        """
        return self.get_overhead_vsize() + self.get_inputs_vsize() + self.get_outputs_vsize()


PartialDimensions = Union[Dimensions, Mapping[str, Any]]

_count_fields = set(Dimensions.model_fields) - {"outputs"}
if set(INPUT_COUNT_FIELDS) != set(InputKind) or set(INPUT_COUNT_FIELDS.values()) != _count_fields:
    raise ValueError("Dimensions fields do not match InputKind")

ZERO = Dimensions()


def _as_dimensions(partial: PartialDimensions) -> Dimensions:
    """Validate a partial dimensions argument and fill in missing fields with 0."""
    if isinstance(partial, Dimensions):
        return partial
    if not isinstance(partial, Mapping):
        raise ValidationError(f"expected Dimensions or mapping, got {type(partial).__name__}")

    data = dict(partial)
    bad_keys = [key for key in data if not isinstance(key, str)]
    if bad_keys:
        raise ValidationError(f"expected field names as keys, got {bad_keys!r}")

    # Deprecated: "n_outputs" was the only output field before outputs carried
    # their aggregate size. Only accept it alongside a consistent "outputs".
    has_n_outputs = "n_outputs" in data
    n_outputs = data.pop("n_outputs", None)
    if has_n_outputs and "outputs" not in data:
        raise ValidationError('deprecated partial addition: argument has key "n_outputs" but no "outputs"')

    dimensions = Dimensions(**data)
    if has_n_outputs and dimensions.outputs.count != n_outputs:
        raise ValidationError('deprecated partial addition: inconsistent values for "n_outputs" and "outputs.count"')
    return dimensions
