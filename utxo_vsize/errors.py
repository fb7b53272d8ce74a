"""
Exception taxonomy for vsize estimation.

Every failure is a deterministic function of the input data, so nothing here
is retryable. Callers either supply an explicit assumption policy or reject
the transaction as malformed.
"""


class DimensionsError(Exception):
    """Base class for all estimation errors."""


class InvalidCodeError(DimensionsError, ValueError):
    """Chain code is not part of the fixed chain code table."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"invalid code {code!r}")


class UnsupportedChainError(DimensionsError, ValueError):
    """Chain code is valid but its address type has no input kind mapping."""

    def __init__(self, code, address_type=None):
        self.code = code
        self.address_type = address_type
        super().__init__(f"unsupported chain {code!r} (address type {address_type})")


class AmbiguousInputError(DimensionsError, ValueError):
    """Input has neither script nor witness and no assumption was supplied."""

    def __init__(self, index):
        self.index = index
        super().__init__(f"illegal input {index}: empty script")


class InvalidAssumptionError(DimensionsError, TypeError):
    """Assumption policy value is not a recognized AssumeUnsigned member."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"illegal value for assume_unsigned: {value!r}")


class ValidationError(DimensionsError, ValueError):
    """Malformed dimensions, factors or lengths."""
