"""
Treasury FX Computation Module
"""

from treasury_fx.computation.converter import (
    CurrencyConverter,
    convert_amount,
    round_to_cents,
)

__all__ = [
    "CurrencyConverter",
    "convert_amount",
    "round_to_cents",
]
