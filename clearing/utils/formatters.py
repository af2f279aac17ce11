"""Formatting utilities for output records and book displays"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union


PRICE_QUANTUM = Decimal("0.01")


def format_price(price: Union[str, int, Decimal]) -> str:
    """Render a price as fixed-point text with exactly two fractional digits."""
    return str(Decimal(str(price)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP))
