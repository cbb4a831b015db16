"""
Conversions between human token amounts and atomic units.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Dict, Optional, Union

from web3 import Web3

from cdp_client.config import get_network_config
from cdp_client.constants import DEGEN_BASE, ETH_ADDRESS, WETH_BASE
from cdp_client.encoding import MAX_UINT256
from cdp_client.types import TokenInfo

Amount = Union[Decimal, str, int, float]

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Tokens that share an address on every supported network
_STATIC_ALIASES: Dict[str, TokenInfo] = {
    "eth": TokenInfo(address=ETH_ADDRESS, decimals=18, symbol="ETH"),
    "weth": TokenInfo(address=WETH_BASE, decimals=18, symbol="WETH"),
    "degen": TokenInfo(address=DEGEN_BASE, decimals=18, symbol="DEGEN"),
}


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # str() keeps 0.0001 as 0.0001 instead of its binary expansion
        return Decimal(str(amount))
    try:
        return Decimal(amount)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e


def to_atomic_amount(amount: Amount, decimals: int) -> int:
    """Convert a human amount to the token's smallest unit.

    ``amount * 10**decimals`` is rounded half away from zero
    (``ROUND_HALF_UP``), so 0.0000005 USDC pays 1 atomic unit, not 0.

    Args:
        amount: Human-readable amount (e.g. ``Decimal("1.5")`` for 1.5 USDC).
        decimals: Token decimals.

    Returns:
        The atomic amount.

    Raises:
        ValueError: If the amount is negative, not a finite number, or does
            not fit in a uint256.
    """
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    value = _to_decimal(amount)
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    with localcontext() as ctx:
        # Enough digits for any uint256 amount
        ctx.prec = 80
        try:
            atomic = int(value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP))
        except InvalidOperation as e:
            raise ValueError(f"Amount too large: {amount}") from e
    if atomic > MAX_UINT256:
        raise ValueError(f"Amount too large: {amount}")
    return atomic


def from_atomic_amount(atomic: Union[int, str], decimals: int) -> str:
    """Format an atomic amount as a human string, trimming trailing zeros."""
    value = int(atomic)
    sign = "-" if value < 0 else ""
    digits = str(abs(value)).rjust(decimals + 1, "0")
    if decimals == 0:
        return sign + digits
    whole = digits[:-decimals]
    frac = digits[-decimals:].rstrip("0")
    return f"{sign}{whole}.{frac}" if frac else f"{sign}{whole}"


def resolve_token(token: str, network: str = "base") -> Optional[TokenInfo]:
    """Resolve a token alias or raw address.

    Args:
        token: An alias (``usdc``, ``eth``, ``weth``, ``degen``) or a 0x address.
        network: The network the USDC alias resolves on.

    Returns:
        Token info, or None if the input is neither a known alias nor an
        address. Raw addresses are assumed to have 18 decimals.
    """
    alias = token.strip().lower()
    if alias == "usdc":
        config = get_network_config(network)
        return TokenInfo(
            address=config.usdc_address,
            decimals=config.usdc_decimals,
            symbol="USDC",
        )
    if alias in _STATIC_ALIASES:
        return _STATIC_ALIASES[alias]

    if _ADDRESS_RE.match(token.strip()):
        address = Web3.to_checksum_address(token.strip())
        return TokenInfo(address=address, decimals=18, symbol=address[:6] + "...")
    return None
