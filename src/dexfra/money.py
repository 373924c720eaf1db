"""Base-unit conversion helpers using fixed USDC precision."""

from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR

from .constants import USDC_DECIMALS


BASE_UNITS_PER_USDC = 10 ** USDC_DECIMALS
_USDC_QUANT = Decimal(1).scaleb(-USDC_DECIMALS)


def ceiling_to_base_units(value: Decimal | float | int | str) -> int:
    """Convert a spending ceiling to base units, rounding down (conservative)."""
    dec = Decimal(str(value)).quantize(_USDC_QUANT, rounding=ROUND_FLOOR)
    if dec < 0:
        raise ValueError(f"Ceiling must be non-negative: {value}")
    return int(dec * BASE_UNITS_PER_USDC)


def base_units_to_decimal(value: int | str) -> Decimal:
    """Convert integer base units to Decimal USDC."""
    return (Decimal(int(value)) / Decimal(BASE_UNITS_PER_USDC)).quantize(_USDC_QUANT)


def format_usdc(value: int | str) -> str:
    """Format base units as a human-readable USDC string."""
    return f"{base_units_to_decimal(value)} USDC"


def wei_to_eth(wei: int) -> Decimal:
    """Convert wei to ETH."""
    return Decimal(wei) / Decimal(10 ** 18)
