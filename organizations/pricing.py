"""
Token sale pricing.

Two policies are supported:

- Fixed price: every unit costs ``price_per_token``.
- Fixed quantity: a linear bonding curve. The k-th unit ever sold
  (0-indexed) costs ``base_price + price_delta * k``, so a purchase of
  ``amount`` units starting at ``tokens_sold`` is an arithmetic series:

      initial = base_price + price_delta * tokens_sold
      total   = amount * (2 * initial + price_delta * (amount - 1)) // 2

  The floor division is part of the payment contract: buyers must pay this
  exact integer, not the continuous value.

All values are integer micro units. Nothing here touches the database.
"""

from __future__ import annotations

from typing import Optional, Tuple

from django.conf import settings

from ledger.constants import MAX_AMOUNT

from .exceptions import ArithmeticOverflowError, SaleModeError, ZeroAmountError

FIXED_PRICE = 'fixed_price'
FIXED_QUANTITY = 'fixed_quantity'

SALE_MODE_CHOICES = [
    (FIXED_PRICE, 'Fixed Price'),
    (FIXED_QUANTITY, 'Fixed Quantity (bonding curve)'),
]

DEFAULT_BASE_PRICE = 10_000   # 0.01
DEFAULT_PRICE_DELTA = 1_000   # 0.001


def get_curve_parameters(base_price: Optional[int] = None, price_delta: Optional[int] = None) -> Tuple[int, int]:
    """Return ``(base_price, price_delta)``, falling back to the deployment settings."""
    if base_price is None:
        base_price = getattr(settings, 'TOKEN_SALE_BASE_PRICE', DEFAULT_BASE_PRICE)
    if price_delta is None:
        price_delta = getattr(settings, 'TOKEN_SALE_PRICE_DELTA', DEFAULT_PRICE_DELTA)
    return int(base_price), int(price_delta)


def _checked(value: int) -> int:
    if value > MAX_AMOUNT:
        raise ArithmeticOverflowError(f"Price computation overflowed ({value} > {MAX_AMOUNT})")
    return value


def unit_price(
    sale_mode: str,
    price_per_token: int,
    index: int,
    base_price: Optional[int] = None,
    price_delta: Optional[int] = None,
) -> int:
    """Price of the unit at 0-based position ``index`` in the cumulative sale."""
    if sale_mode == FIXED_PRICE:
        return int(price_per_token)
    if sale_mode == FIXED_QUANTITY:
        base, delta = get_curve_parameters(base_price, price_delta)
        return _checked(base + _checked(delta * index))
    raise SaleModeError(f"Unknown sale mode {sale_mode!r}")


def quote_total_price(
    sale_mode: str,
    price_per_token: int,
    tokens_sold: int,
    amount: int,
    base_price: Optional[int] = None,
    price_delta: Optional[int] = None,
) -> int:
    """Total cost of buying ``amount`` units when ``tokens_sold`` have already been sold."""
    if amount < 1:
        raise ZeroAmountError()

    if sale_mode == FIXED_PRICE:
        return _checked(int(price_per_token) * amount)

    if sale_mode == FIXED_QUANTITY:
        base, delta = get_curve_parameters(base_price, price_delta)
        initial_price = _checked(base + _checked(delta * tokens_sold))
        series = _checked(_checked(2 * initial_price) + _checked(delta * (amount - 1)))
        return _checked(amount * series) // 2

    raise SaleModeError(f"Unknown sale mode {sale_mode!r}")
