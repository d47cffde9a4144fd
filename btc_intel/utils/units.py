"""Satoshi / BTC unit conversion."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

# Satoshis per Bitcoin
SATOSHIS_PER_BTC = Decimal('100000000')

BTC_PRECISION = Decimal('0.00000001')
CENT = Decimal('0.01')


def satoshi_to_btc(satoshis: int) -> Decimal:
    """Convert satoshis to BTC."""
    return (Decimal(satoshis) / SATOSHIS_PER_BTC).quantize(BTC_PRECISION)


def btc_to_satoshi(btc: Union[Decimal, str]) -> int:
    """Convert BTC to satoshis."""
    return int((Decimal(btc) * SATOSHIS_PER_BTC).to_integral_value(rounding=ROUND_HALF_UP))


def format_btc(satoshis: int) -> str:
    """Render satoshis as a fixed 8-decimal BTC string, e.g. ``"3.00000000"``."""
    return f"{satoshi_to_btc(satoshis):.8f}"


def round_half_up(value: Union[Decimal, int, float, str], places: int) -> Decimal:
    """Round to ``places`` decimals, halves away from zero."""
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def format_fixed(value: Union[Decimal, int, float, str], places: int) -> str:
    """Fixed-point rendering with half-up rounding."""
    return f"{round_half_up(value, places):.{places}f}"


def ratio(numerator: int, denominator: int, places: int) -> str:
    """Exact ``numerator / denominator`` rendered with ``places`` decimals."""
    return format_fixed(Decimal(numerator) / Decimal(denominator), places)


def megabytes(size_bytes: int) -> str:
    """Bytes (or vbytes) as a 2-decimal megabyte string."""
    return ratio(size_bytes, 1_000_000, 2)


def usd_value(satoshis: int, btc_price_usd: Union[Decimal, int, float]) -> str:
    """USD valuation of ``satoshis`` at ``btc_price_usd``, 2 decimals."""
    value = Decimal(satoshis) / SATOSHIS_PER_BTC * Decimal(str(btc_price_usd))
    return format_fixed(value, 2)


def format_number(value: Union[int, float, Decimal]) -> str:
    """Render a number without a trailing ``.0`` when it is integral."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(int(value))
    return str(value)
