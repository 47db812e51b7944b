"""
Ether denomination helpers.

    1 ETH  = 10**18 wei
    1 gwei = 10**9  wei

Conversions go through ``Decimal`` so amounts never pick up binary
floating-point error on their way to an integer wei count.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

ETH_DECIMALS: int = 18
WEI_PER_ETH: int = 10 ** ETH_DECIMALS
WEI_PER_GWEI: int = 10 ** 9

# enough digits for any uint256 wei amount
_PRECISION = 100


def parse_hex_quantity(value: str) -> int:
    """Parse a JSON-RPC hex quantity such as ``"0x1bc16d674ec80000"``."""
    text = value[2:] if value.startswith(("0x", "0X")) else value
    if not text:
        return 0
    return int(text, 16)


def to_hex_quantity(value: int) -> str:
    return hex(value)


def wei_to_eth(wei: int | str) -> Decimal:
    """Convert a wei amount (int or hex quantity) to ETH."""
    if isinstance(wei, str):
        wei = parse_hex_quantity(wei)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(wei) / WEI_PER_ETH


def eth_to_wei(amount: Decimal | str | int | float) -> int:
    """
    Convert an ETH amount to wei.

    Floats are routed through ``str`` so ``0.1`` means 0.1 ETH exactly.
    Raises ValueError for negative amounts or more than 18 decimals.

    >>> eth_to_wei("0.1")
    100000000000000000
    """
    try:
        dec = Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid ETH amount: {amount!r}") from exc
    if not dec.is_finite() or dec < 0:
        raise ValueError(f"ETH amount must be a non-negative number, got {amount!r}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        wei = dec * WEI_PER_ETH
    if wei != wei.to_integral_value():
        raise ValueError(f"ETH amount has more than {ETH_DECIMALS} decimals: {amount!r}")
    return int(wei)


def format_eth(wei: int) -> str:
    """Human-readable ETH amount with trailing zeros stripped."""
    text = f"{wei_to_eth(wei):.{ETH_DECIMALS}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} ETH"
