"""
Data types and models for the CDP Python client.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from cdp_client.exceptions import ResponseShapeError


def _mapping(value: Any, field: str) -> Dict[str, Any]:
    """Return a nested JSON object, treating a missing one as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ResponseShapeError(f"Malformed {field} returned: {value!r}", field=field)
    return value


def _integer(value: Any, field: str) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ResponseShapeError(f"Malformed {field} returned: {value!r}", field=field) from e


@dataclass(frozen=True)
class TokenInfo:
    """A token known by address, decimals and symbol."""

    address: str
    decimals: int
    symbol: str


@dataclass
class Balance:
    """A token balance held by the account."""

    symbol: str
    amount: str  # Atomic units, as returned by the API
    decimals: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Balance":
        """Create from API response dictionary.

        Raises:
            ResponseShapeError: If the entry or its nested objects are not
                JSON objects, or decimals is not an integer.
        """
        if not isinstance(data, dict):
            raise ResponseShapeError(f"Malformed balance returned: {data!r}", field="balances")
        token = _mapping(data.get("token"), "token")
        amount = _mapping(data.get("amount"), "amount")
        return cls(
            symbol=str(token.get("symbol") or "unknown"),
            amount=str(amount.get("amount") or "0"),
            decimals=_integer(amount.get("decimals"), "decimals"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return {"symbol": self.symbol, "amount": self.amount, "decimals": self.decimals}


@dataclass
class SendResult:
    """Outcome of a token transfer."""

    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SwapPrice:
    """An indicative swap price (read-only)."""

    buy_amount: str
    sell_amount: str
    price: str
    buy_token: str
    sell_token: str
    estimated_gas: Optional[str] = None

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], sell_token: str, buy_token: str, sell_amount: str
    ) -> "SwapPrice":
        """Create from API response dictionary, falling back to the request values."""
        estimated_gas = data.get("estimatedGas")
        return cls(
            buy_amount=str(data.get("buyAmount") or "0"),
            sell_amount=str(data.get("sellAmount") or sell_amount),
            price=str(data.get("price") or "0"),
            buy_token=data.get("buyTokenAddress") or buy_token,
            sell_token=data.get("sellTokenAddress") or sell_token,
            estimated_gas=str(estimated_gas) if estimated_gas is not None else None,
        )


@dataclass
class SwapTransaction:
    """The executable transaction attached to a firm quote."""

    to: str
    data: str
    value: str
    gas: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwapTransaction":
        """Create from API response dictionary."""
        return cls(
            to=data.get("to", ""),
            data=data.get("data", "0x"),
            value=str(data.get("value") or "0"),
            gas=str(data.get("gas") or "0"),
        )


@dataclass
class SwapQuote:
    """A firm swap quote."""

    buy_amount: str
    sell_amount: str
    price: str
    buy_token: str
    sell_token: str
    allowance_target: Optional[str] = None
    transaction: Optional[SwapTransaction] = None

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], sell_token: str, buy_token: str, sell_amount: str
    ) -> "SwapQuote":
        """Create from API response dictionary, falling back to the request values."""
        tx = _mapping(data.get("transaction"), "transaction")
        return cls(
            buy_amount=str(data.get("buyAmount") or "0"),
            sell_amount=str(data.get("sellAmount") or sell_amount),
            price=str(data.get("price") or "0"),
            buy_token=data.get("buyTokenAddress") or buy_token,
            sell_token=data.get("sellTokenAddress") or sell_token,
            allowance_target=data.get("allowanceTarget"),
            transaction=SwapTransaction.from_dict(tx) if tx else None,
        )


@dataclass
class SwapResult:
    """Outcome of an executed swap."""

    success: bool
    tx_hash: Optional[str] = None
    buy_amount: Optional[str] = None
    sell_amount: Optional[str] = None
    error: Optional[str] = None
