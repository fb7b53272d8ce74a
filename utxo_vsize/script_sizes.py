"""
Length prefixes used in transaction serialization.

See https://en.bitcoin.it/wiki/Protocol_documentation#Variable_length_integer
and the push opcodes in https://en.bitcoin.it/wiki/Script#Constants
"""

from utxo_vsize.errors import ValidationError


def _require_length(n) -> int:
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise ValidationError(f"expected non-negative integer, got {n!r}")
    return n


def compact_size_length(n: int) -> int:
    """
    Size of the compactSize prefix for a length or count.

    Args:
        n: Non-negative integer to encode

    Returns:
        int: 1, 3, 5 or 9 bytes
    """
    _require_length(n)
    if n <= 252:
        return 1
    if n <= 0xFFFF:
        return 3
    if n <= 0xFFFFFFFF:
        return 5
    return 9


def pushdata_encoding_length(n: int) -> int:
    """Size of the push opcode(s) preceding `n` bytes of data in a script."""
    _require_length(n)
    if n < 0x4C:
        return 1
    if n <= 0xFF:
        return 2
    if n <= 0xFFFF:
        return 3
    return 5


def var_slice_size(n: int) -> int:
    """A length-prefixed byte string of length `n`."""
    return compact_size_length(n) + n
