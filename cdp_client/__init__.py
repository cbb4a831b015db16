"""
CDP Python Client

An async client for paying out stablecoins and swapping tokens from a
Coinbase Developer Platform wallet on Base.
"""

from cdp_client.client import CdpClient
from cdp_client.config import CdpCredentials, NetworkConfig, get_network_config
from cdp_client.keys import Algorithm, EcdsaP256Key, Ed25519Key, parse_signing_key
from cdp_client.types import (
    Balance,
    SendResult,
    SwapPrice,
    SwapQuote,
    SwapResult,
    SwapTransaction,
    TokenInfo,
)
from cdp_client.units import from_atomic_amount, resolve_token, to_atomic_amount
from cdp_client.exceptions import (
    CdpError,
    ConfigurationError,
    KeyFormatError,
    ResponseShapeError,
    SigningError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "CdpClient",
    # Config
    "CdpCredentials",
    "NetworkConfig",
    "get_network_config",
    # Keys
    "Algorithm",
    "EcdsaP256Key",
    "Ed25519Key",
    "parse_signing_key",
    # Types
    "Balance",
    "SendResult",
    "SwapPrice",
    "SwapQuote",
    "SwapResult",
    "SwapTransaction",
    "TokenInfo",
    # Units
    "from_atomic_amount",
    "resolve_token",
    "to_atomic_amount",
    # Exceptions
    "CdpError",
    "ConfigurationError",
    "KeyFormatError",
    "ResponseShapeError",
    "SigningError",
    "TransportError",
]
