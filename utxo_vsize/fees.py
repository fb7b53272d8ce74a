"""
Fee estimation from dimensions.

fee (satoshis) = ceil(vsize * fee rate (sat/vB))
"""

import logging
import math
from decimal import ROUND_CEILING, Decimal
from typing import Optional

from utxo_vsize.config import VSizeConfig, get_config
from utxo_vsize.dimensions import Dimensions
from utxo_vsize.errors import ValidationError

logger = logging.getLogger(__name__)


def _require_fee_rate(fee_rate) -> Decimal:
    if isinstance(fee_rate, bool) or not isinstance(fee_rate, (int, float, Decimal)):
        raise ValidationError(f"expected fee rate to be a number, got {fee_rate!r}")
    if isinstance(fee_rate, float) and not math.isfinite(fee_rate):
        raise ValidationError(f"expected finite fee rate, got {fee_rate!r}")
    if fee_rate < 0:
        raise ValidationError(f"fee rate must not be negative, got {fee_rate!r}")
    # str() so that 1.1 sat/vB is 1.1 and not 1.100000000000000088817841970012523
    return Decimal(str(fee_rate))


def fee_for_vsize(vsize: int, fee_rate) -> int:
    """
    Fee in satoshis for a transaction of `vsize` vbytes.

    Args:
        vsize: Virtual size in vbytes
        fee_rate: Fee rate in sat/vB

    Returns:
        int: Fee in satoshis, rounded up
    """
    if not isinstance(vsize, int) or isinstance(vsize, bool) or vsize < 0:
        raise ValidationError(f"expected vsize to be a non-negative integer, got {vsize!r}")
    fee = (_require_fee_rate(fee_rate) * vsize).to_integral_value(rounding=ROUND_CEILING)
    return int(fee)


def fee_for_dimensions(
    dimensions: Dimensions, fee_rate=None, config: Optional[VSizeConfig] = None
) -> int:
    """
    Fee in satoshis for the estimated vsize of `dimensions`.

    Args:
        dimensions: Transaction dimensions
        fee_rate: Fee rate in sat/vB, defaults to the configured default fee rate
        config: Configuration, defaults to `get_config()`

    Returns:
        int: Fee in satoshis. The fee rate never goes below the configured
        minimum relay fee rate.
    """
    config = config or get_config()
    rate = _require_fee_rate(config.default_fee_rate if fee_rate is None else fee_rate)
    min_rate = _require_fee_rate(config.min_relay_fee_rate)
    if rate < min_rate:
        logger.debug(f"fee rate {rate} below minimum relay fee rate, using {min_rate}")
        rate = min_rate

    vsize = dimensions.get_vsize()
    fee = fee_for_vsize(vsize, rate)
    logger.debug(f"fee {fee} sat for vsize {vsize} at {rate} sat/vB")
    return fee
