"""
Main CDP client for payouts and swaps from a platform-held wallet on Base.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from cdp_client.auth import CdpAuth, create_auth
from cdp_client.config import CdpCredentials, NetworkConfig, get_network_config
from cdp_client.constants import CDP_BASE, DEFAULT_NETWORK, DEFAULT_SLIPPAGE_BPS, ENDPOINTS
from cdp_client.encoding import encode_erc20_transfer, serialize_eip1559_tx
from cdp_client.exceptions import CdpError, ResponseShapeError
from cdp_client.http import HttpClient
from cdp_client.keys import Algorithm
from cdp_client.types import Balance, SendResult, SwapPrice, SwapQuote, SwapResult
from cdp_client.units import Amount, to_atomic_amount

logger = logging.getLogger(__name__)


def _as_dict(result: Any) -> Dict[str, Any]:
    return result if isinstance(result, dict) else {}


def _require_field(result: Any, field: str) -> Any:
    value = _as_dict(result).get(field)
    if not value:
        raise ResponseShapeError(f"No {field} returned", field=field)
    return value


class CdpClient:
    """Client for the CDP wallet API.

    The remote platform holds the wallet and signs transactions; this client
    only authenticates calls and builds unsigned transaction payloads.

    Payment and swap execution never raise: failures come back as results
    with ``success=False``. Read calls return an empty list or None when the
    request fails. Credential errors raise at construction.
    """

    def __init__(
        self,
        api_key_id: str,
        api_key_material: str,
        wallet_secret: str,
        account_address: str,
        host: str = CDP_BASE,
        network: str = DEFAULT_NETWORK,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the CDP client.

        Args:
            api_key_id: The API key name.
            api_key_material: PEM EC key or base64 Ed25519 bundle.
            wallet_secret: Base64 DER P-256 wallet secret.
            account_address: Address of the platform-held account.
            host: The API base URL.
            network: CDP network name ("base" or "base-sepolia").
            timeout: Optional HTTP timeout in seconds. None means no timeout.
            transport: Optional httpx transport, mainly for tests.

        Raises:
            KeyFormatError: If a credential cannot be parsed.
            ConfigurationError: If the network is not supported.
        """
        self._host = host.rstrip("/")
        self._network: NetworkConfig = get_network_config(network)
        self._account_address = account_address
        self._auth: CdpAuth = create_auth(api_key_id, api_key_material, wallet_secret)
        self._http = HttpClient(self._host, auth=self._auth, timeout=timeout, transport=transport)

    @classmethod
    def from_credentials(cls, credentials: CdpCredentials, **kwargs: Any) -> "CdpClient":
        """Create a client from a credential bundle."""
        return cls(
            api_key_id=credentials.api_key_id,
            api_key_material=credentials.api_key_material,
            wallet_secret=credentials.wallet_secret,
            account_address=credentials.account_address,
            **kwargs,
        )

    @classmethod
    def from_env(cls, dotenv: bool = True, **kwargs: Any) -> "CdpClient":
        """Create a client from CDP_* environment variables.

        Args:
            dotenv: Load a ``.env`` file first.
            **kwargs: Passed through to the constructor.
        """
        return cls.from_credentials(CdpCredentials.from_env(dotenv=dotenv), **kwargs)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._http.close()

    async def __aenter__(self) -> "CdpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def host(self) -> str:
        """Get the API host URL."""
        return self._host

    @property
    def address(self) -> str:
        """Get the platform-held account address."""
        return self._account_address

    @property
    def network(self) -> str:
        """Get the CDP network name."""
        return self._network.name

    @property
    def chain_id(self) -> int:
        """Get the chain ID."""
        return self._network.chain_id

    @property
    def algorithm(self) -> Algorithm:
        """Get the API key's signature algorithm."""
        return self._auth.algorithm

    # =========================================================================
    # Payments
    # =========================================================================

    async def send_stablecoin(
        self,
        recipient: str,
        amount: Amount,
        token_address: Optional[str] = None,
        decimals: Optional[int] = None,
    ) -> SendResult:
        """Send an ERC-20 stablecoin from the account.

        The amount is converted with ``to_atomic_amount`` (round half away
        from zero). The unsigned transaction is submitted once; nothing is
        retried, since a blind retry could pay twice.

        Args:
            recipient: Recipient address.
            amount: Human amount, e.g. ``Decimal("12.5")``.
            token_address: Token contract. Defaults to the network's USDC.
            decimals: Token decimals. Defaults to USDC's 6.

        Returns:
            ``SendResult(success=True, tx_hash=...)``, or ``success=False``
            with an error message.
        """
        token = token_address or self._network.usdc_address
        token_decimals = self._network.usdc_decimals if decimals is None else decimals
        try:
            atomic = to_atomic_amount(amount, token_decimals)
            calldata = encode_erc20_transfer(recipient, atomic)
            tx = serialize_eip1559_tx(to=token, data=calldata, chain_id=self.chain_id)

            endpoint = ENDPOINTS["send_transaction"].format(address=self._account_address)
            result = await self._http.post(
                endpoint, json={"transaction": tx, "network": self.network}
            )
            tx_hash = _require_field(result, "transactionHash")
        except (CdpError, ValueError, TypeError) as e:
            logger.error("send_stablecoin to %s failed: %s", recipient, e)
            return SendResult(success=False, error=str(e))

        logger.info("Sent %s (token %s) to %s tx=%s", amount, token, recipient, tx_hash)
        return SendResult(success=True, tx_hash=tx_hash)

    async def send_usdc(self, recipient: str, amount: Amount) -> SendResult:
        """Send USDC on the configured network."""
        return await self.send_stablecoin(recipient, amount)

    # =========================================================================
    # Accounts
    # =========================================================================

    async def get_balance(self) -> List[Balance]:
        """Get the account's token balances.

        Returns:
            Balances in atomic units; empty if the account holds nothing or
            the lookup failed.
        """
        endpoint = ENDPOINTS["token_balances"].format(
            network=self.network, address=self._account_address
        )
        try:
            result = await self._http.get(endpoint)
            balances = _as_dict(result).get("balances") or []
            if not isinstance(balances, list):
                raise ResponseShapeError("Malformed balances returned", field="balances")
            return [Balance.from_dict(b) for b in balances]
        except CdpError as e:
            logger.warning("get_balance failed: %s", e)
            return []

    async def create_account(self) -> Optional[str]:
        """Create a new EVM account on the platform.

        Returns:
            The new account address, or None on failure.
        """
        try:
            account = await self._http.post(ENDPOINTS["accounts"], json={})
            address = _require_field(account, "address")
        except CdpError as e:
            logger.error("create_account failed: %s", e)
            return None

        logger.info("New account created: %s", address)
        return address

    # =========================================================================
    # Swaps
    # =========================================================================

    @staticmethod
    def _slippage_percentage(slippage_bps: int) -> str:
        return str(Decimal(slippage_bps) / Decimal(10000))

    async def get_swap_price(
        self,
        sell_token: str,
        buy_token: str,
        sell_amount: str,
    ) -> Optional[SwapPrice]:
        """Get an indicative swap price. Read-only, no wallet auth.

        Args:
            sell_token: Address of the token to sell.
            buy_token: Address of the token to buy.
            sell_amount: Sell amount in atomic units.

        Returns:
            The price, or None if the request failed.
        """
        params = {
            "sellToken": sell_token,
            "buyToken": buy_token,
            "sellAmount": sell_amount,
            "network": self.network,
        }
        try:
            result = await self._http.get(ENDPOINTS["swap_price"], params=params)
            return SwapPrice.from_dict(_as_dict(result), sell_token, buy_token, sell_amount)
        except CdpError as e:
            logger.warning("get_swap_price failed: %s", e)
            return None

    async def get_swap_quote(
        self,
        sell_token: str,
        buy_token: str,
        sell_amount: str,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> Optional[SwapQuote]:
        """Get a firm swap quote with an executable transaction.

        Args:
            sell_token: Address of the token to sell.
            buy_token: Address of the token to buy.
            sell_amount: Sell amount in atomic units.
            slippage_bps: Maximum slippage in basis points.

        Returns:
            The quote, or None if the request failed.
        """
        body = {
            "sellToken": sell_token,
            "buyToken": buy_token,
            "sellAmount": sell_amount,
            "slippagePercentage": self._slippage_percentage(slippage_bps),
            "network": self.network,
            "takerAddress": self._account_address,
        }
        try:
            result = await self._http.post(ENDPOINTS["swap_quote"], json=body)
            return SwapQuote.from_dict(_as_dict(result), sell_token, buy_token, sell_amount)
        except CdpError as e:
            logger.warning("get_swap_quote failed: %s", e)
            return None

    async def execute_swap(
        self,
        sell_token: str,
        buy_token: str,
        sell_amount: str,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> SwapResult:
        """Execute a swap from the account.

        Returns:
            ``SwapResult(success=True, ...)`` with the transaction hash and
            filled amounts, or ``success=False`` with an error message.
        """
        endpoint = ENDPOINTS["account_swap"].format(address=self._account_address)
        body = {
            "sellToken": sell_token,
            "buyToken": buy_token,
            "sellAmount": sell_amount,
            "slippagePercentage": self._slippage_percentage(slippage_bps),
            "network": self.network,
        }
        try:
            result = _as_dict(await self._http.post(endpoint, json=body))
            tx_hash = _require_field(result, "transactionHash")
        except CdpError as e:
            logger.error("execute_swap %s -> %s failed: %s", sell_token, buy_token, e)
            return SwapResult(success=False, error=str(e))

        logger.info("Swap executed: %s -> %s tx=%s", sell_token, buy_token, tx_hash)
        return SwapResult(
            success=True,
            tx_hash=tx_hash,
            buy_amount=result.get("buyAmount"),
            sell_amount=result.get("sellAmount"),
        )
