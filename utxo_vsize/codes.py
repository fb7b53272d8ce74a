"""
Chain code registry.

A chain code is a small integer used by the wallet's key derivation to encode
both the script type of an address and whether the address receives external
payments or internal change.

    AddressType   external  internal
    p2sh                 0         1
    p2shP2wsh           10        11
    p2wsh               20        21
    p2tr                30        31

The table is built once at import time and checked for consistency: no
duplicate codes, exactly one code per (AddressType, Purpose) pair and no
missing pairs.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple

from utxo_vsize.errors import InvalidCodeError, ValidationError

ChainCode = int


class AddressType(str, Enum):
    """Script pattern of a derived address."""

    P2SH = "p2sh"
    P2SH_P2WSH = "p2shP2wsh"
    P2WSH = "p2wsh"
    P2TR = "p2tr"


class Purpose(str, Enum):
    """Receive (external) or change (internal) address."""

    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class ChainCodeEntry:
    code: ChainCode
    address_type: AddressType
    purpose: Purpose


_CODE_TABLE: Tuple[ChainCodeEntry, ...] = (
    ChainCodeEntry(0, AddressType.P2SH, Purpose.EXTERNAL),
    ChainCodeEntry(10, AddressType.P2SH_P2WSH, Purpose.EXTERNAL),
    ChainCodeEntry(20, AddressType.P2WSH, Purpose.EXTERNAL),
    ChainCodeEntry(30, AddressType.P2TR, Purpose.EXTERNAL),
    ChainCodeEntry(1, AddressType.P2SH, Purpose.INTERNAL),
    ChainCodeEntry(11, AddressType.P2SH_P2WSH, Purpose.INTERNAL),
    ChainCodeEntry(21, AddressType.P2WSH, Purpose.INTERNAL),
    ChainCodeEntry(31, AddressType.P2TR, Purpose.INTERNAL),
)


def _build_table(entries: Tuple[ChainCodeEntry, ...]) -> Mapping[ChainCode, ChainCodeEntry]:
    """Index entries by code, rejecting tables that are not a bijection."""
    by_code = {}
    pairs = set()
    for entry in entries:
        if not isinstance(entry.code, int) or entry.code < 0:
            raise ValueError(f"chain code must be a non-negative integer: {entry.code!r}")
        if entry.code in by_code:
            raise ValueError(f"duplicate code {entry.code}")
        pair = (entry.address_type, entry.purpose)
        if pair in pairs:
            raise ValueError(f"duplicate code for {pair[0].value}/{pair[1].value}")
        pairs.add(pair)
        by_code[entry.code] = entry

    missing = [
        (address_type.value, purpose.value)
        for address_type in AddressType
        for purpose in Purpose
        if (address_type, purpose) not in pairs
    ]
    if missing:
        raise ValueError(f"chain code table is missing {missing}")

    return MappingProxyType(by_code)


_BY_CODE = _build_table(_CODE_TABLE)

# External codes first, in table order
ALL_CODES: Tuple[ChainCode, ...] = tuple(entry.code for entry in _CODE_TABLE)


def is_valid(code) -> bool:
    """True iff `code` is one of the enumerated chain codes."""
    return isinstance(code, int) and not isinstance(code, bool) and code in _BY_CODE


def _require_valid(code) -> ChainCodeEntry:
    if not is_valid(code):
        raise InvalidCodeError(code)
    return _BY_CODE[code]


def classify(code) -> Tuple[AddressType, Purpose]:
    """
    Classify a chain code.

    Args:
        code: Chain code

    Returns:
        (AddressType, Purpose) of the code

    Raises:
        InvalidCodeError: If the code is not in the table
    """
    entry = _require_valid(code)
    return entry.address_type, entry.purpose


@dataclass(frozen=True)
class CodeGroup:
    """An immutable group of chain codes."""

    values: Tuple[ChainCode, ...]

    def has(self, code) -> bool:
        """Membership test that rejects codes outside the table."""
        _require_valid(code)
        return code in self.values

    def __contains__(self, code) -> bool:
        return self.has(code)

    def __iter__(self) -> Iterator[ChainCode]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class CodesByPurpose(CodeGroup):
    """The internal and external code of one address type."""

    internal: ChainCode
    external: ChainCode

    @classmethod
    def for_address_type(cls, address_type: AddressType) -> "CodesByPurpose":
        by_purpose = {
            entry.purpose: entry.code
            for entry in _CODE_TABLE
            if entry.address_type == address_type
        }
        return cls(
            values=tuple(sorted(by_purpose.values())),
            internal=by_purpose[Purpose.INTERNAL],
            external=by_purpose[Purpose.EXTERNAL],
        )


@dataclass(frozen=True)
class CodesByType(CodeGroup):
    """One code per address type, all sharing a purpose."""

    p2sh: ChainCode
    p2sh_p2wsh: ChainCode
    p2wsh: ChainCode
    p2tr: ChainCode

    @classmethod
    def for_purpose(cls, purpose: Purpose) -> "CodesByType":
        by_type = {
            entry.address_type: entry.code
            for entry in _CODE_TABLE
            if entry.purpose == purpose
        }
        return cls(
            values=tuple(by_type[address_type] for address_type in AddressType),
            p2sh=by_type[AddressType.P2SH],
            p2sh_p2wsh=by_type[AddressType.P2SH_P2WSH],
            p2wsh=by_type[AddressType.P2WSH],
            p2tr=by_type[AddressType.P2TR],
        )

    def get(self, address_type: AddressType) -> ChainCode:
        return {
            AddressType.P2SH: self.p2sh,
            AddressType.P2SH_P2WSH: self.p2sh_p2wsh,
            AddressType.P2WSH: self.p2wsh,
            AddressType.P2TR: self.p2tr,
        }[AddressType(address_type)]


_BY_PURPOSE: Mapping[Purpose, CodesByType] = MappingProxyType(
    {purpose: CodesByType.for_purpose(purpose) for purpose in Purpose}
)
_BY_ADDRESS_TYPE: Mapping[AddressType, CodesByPurpose] = MappingProxyType(
    {address_type: CodesByPurpose.for_address_type(address_type) for address_type in AddressType}
)


def codes_for_purpose(purpose) -> CodesByType:
    """Return the group of codes with the given purpose, one per address type."""
    try:
        return _BY_PURPOSE[Purpose(purpose)]
    except ValueError as e:
        raise ValidationError(f"unknown purpose {purpose!r}") from e


def codes_for_address_type(address_type) -> CodesByPurpose:
    """Return the (internal, external) codes of an address type."""
    try:
        return _BY_ADDRESS_TYPE[AddressType(address_type)]
    except ValueError as e:
        raise ValidationError(f"unknown address type {address_type!r}") from e


INTERNAL = _BY_PURPOSE[Purpose.INTERNAL]
EXTERNAL = _BY_PURPOSE[Purpose.EXTERNAL]
P2SH = _BY_ADDRESS_TYPE[AddressType.P2SH]
P2SH_P2WSH = _BY_ADDRESS_TYPE[AddressType.P2SH_P2WSH]
P2WSH = _BY_ADDRESS_TYPE[AddressType.P2WSH]
P2TR = _BY_ADDRESS_TYPE[AddressType.P2TR]

is_p2sh = P2SH.has
is_p2sh_p2wsh = P2SH_P2WSH.has
is_p2wsh = P2WSH.has
is_p2tr = P2TR.has
is_internal = INTERNAL.has
is_external = EXTERNAL.has
