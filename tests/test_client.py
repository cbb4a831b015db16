"""End-to-end tests for CdpClient against a stubbed API."""

import asyncio
import base64
import json
from decimal import Decimal

import httpx
import pytest
import respx
from httpx import Response

from cdp_client import CdpClient
from cdp_client.auth import request_hash
from cdp_client.config import CdpCredentials
from cdp_client.constants import USDC_BASE
from cdp_client.exceptions import ConfigurationError, KeyFormatError
from cdp_client.keys import Algorithm
from cdp_client.types import Balance, SwapTransaction


def _claims(token: str) -> dict:
    claims_b64 = token.split(".")[1]
    return json.loads(base64.urlsafe_b64decode(claims_b64 + "=" * (-len(claims_b64) % 4)))


def _calldata_amount(raw_tx: str) -> int:
    # The call-data is the tail of the RLP body, followed by the empty access list (0xc0)
    assert raw_tx.endswith("c0")
    return int(raw_tx[:-2][-64:], 16)


@pytest.fixture
def client_kwargs(api_key_id, ed25519_material, wallet_secret, account_address, host):
    return {
        "api_key_id": api_key_id,
        "api_key_material": ed25519_material,
        "wallet_secret": wallet_secret,
        "account_address": account_address,
        "host": host,
    }


def run(client_kwargs, scenario):
    """Open a client, run ``scenario(client)`` and close it."""

    async def _main():
        async with CdpClient(**client_kwargs) as client:
            return await scenario(client)

    return asyncio.run(_main())


class TestConstruction:
    """Tests for client construction."""

    def test_ed25519_client(self, client_kwargs, account_address):
        client = CdpClient(**client_kwargs)
        assert client.algorithm == Algorithm.EDDSA
        assert client.address == account_address
        assert client.network == "base"
        assert client.chain_id == 8453
        asyncio.run(client.close())

    def test_es256_client(self, client_kwargs, ec_pem):
        client = CdpClient(**{**client_kwargs, "api_key_material": ec_pem})
        assert client.algorithm == Algorithm.ES256
        asyncio.run(client.close())

    def test_bad_key_fails_fast(self, client_kwargs):
        with pytest.raises(KeyFormatError):
            CdpClient(**{**client_kwargs, "api_key_material": base64.b64encode(b"x" * 48).decode()})

    def test_bad_wallet_secret_fails_fast(self, client_kwargs):
        with pytest.raises(KeyFormatError):
            CdpClient(**{**client_kwargs, "wallet_secret": "bm90IGEga2V5"})

    def test_from_credentials(self, client_kwargs, host):
        creds = CdpCredentials(
            api_key_id=client_kwargs["api_key_id"],
            api_key_material=client_kwargs["api_key_material"],
            wallet_secret=client_kwargs["wallet_secret"],
            account_address=client_kwargs["account_address"],
        )
        client = CdpClient.from_credentials(creds, host=host, network="base-sepolia")
        assert client.address == creds.account_address
        assert client.host == host
        assert client.chain_id == 84532
        asyncio.run(client.close())

    def test_unknown_network(self, client_kwargs):
        with pytest.raises(ConfigurationError):
            CdpClient(**client_kwargs, network="ethereum")

    def test_host_trailing_slash(self, client_kwargs, host):
        client = CdpClient(**{**client_kwargs, "host": host + "/"})
        assert client.host == host
        asyncio.run(client.close())


class TestGetBalance:
    """Tests for get_balance."""

    @respx.mock
    def test_balances(self, client_kwargs, host, account_address):
        route = respx.get(f"{host}/v2/evm/token-balances/base/{account_address}").mock(
            return_value=Response(200, json={
                "balances": [
                    {"token": {"symbol": "USDC"}, "amount": {"amount": "5000000", "decimals": 6}}
                ]
            })
        )

        balances = run(client_kwargs, lambda c: c.get_balance())

        assert balances == [Balance(symbol="USDC", amount="5000000", decimals=6)]
        assert balances[0].to_dict() == {"symbol": "USDC", "amount": "5000000", "decimals": 6}

        request = route.calls.last.request
        assert request.headers["Authorization"].startswith("Bearer ")
        assert "X-Wallet-Auth" not in request.headers
        claims = _claims(request.headers["Authorization"][len("Bearer "):])
        assert claims["uris"] == [
            f"GET api.cdp.coinbase.com/platform/v2/evm/token-balances/base/{account_address}"
        ]

    @respx.mock
    def test_missing_fields_default(self, client_kwargs, host, account_address):
        respx.get(f"{host}/v2/evm/token-balances/base/{account_address}").mock(
            return_value=Response(200, json={"balances": [{}]})
        )
        balances = run(client_kwargs, lambda c: c.get_balance())
        assert balances == [Balance(symbol="unknown", amount="0", decimals=0)]

    @respx.mock
    def test_no_holdings(self, client_kwargs, host, account_address):
        respx.get(f"{host}/v2/evm/token-balances/base/{account_address}").mock(
            return_value=Response(200, json={"balances": []})
        )
        assert run(client_kwargs, lambda c: c.get_balance()) == []

    @respx.mock
    def test_failure_is_empty(self, client_kwargs, host, account_address):
        respx.get(f"{host}/v2/evm/token-balances/base/{account_address}").mock(
            return_value=Response(500, text="boom")
        )
        assert run(client_kwargs, lambda c: c.get_balance()) == []

    @pytest.mark.parametrize("payload", [
        {"balances": [None]},
        {"balances": "USDC"},
        {"balances": [{"token": "USDC", "amount": {"amount": "1", "decimals": 6}}]},
        {"balances": [{"token": {"symbol": "USDC"}, "amount": {"amount": "1", "decimals": "six"}}]},
        {"balances": [{"token": {"symbol": "USDC"}, "amount": ["1", 6]}]},
    ])
    @respx.mock
    def test_malformed_body_is_empty(self, client_kwargs, host, account_address, payload):
        respx.get(f"{host}/v2/evm/token-balances/base/{account_address}").mock(
            return_value=Response(200, json=payload)
        )
        assert run(client_kwargs, lambda c: c.get_balance()) == []


class TestSendStablecoin:
    """Tests for send_stablecoin."""

    @respx.mock
    def test_send_small_amount(self, client_kwargs, host, account_address, recipient):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            return_value=Response(200, json={"transactionHash": "0x" + "ab" * 32})
        )

        result = run(client_kwargs, lambda c: c.send_stablecoin(recipient, 0.0001))

        assert result.success is True
        assert result.tx_hash == "0x" + "ab" * 32
        assert result.error is None

        request = route.calls.last.request
        body = json.loads(request.content)
        assert body["network"] == "base"
        assert body["transaction"].startswith("0x02")
        assert _calldata_amount(body["transaction"]) == 100
        assert USDC_BASE[2:].lower() in body["transaction"]
        assert ("11" * 20) in body["transaction"]

        wallet_claims = _claims(request.headers["X-Wallet-Auth"])
        assert wallet_claims["reqHash"] == request_hash(body)
        assert wallet_claims["uris"] == [
            f"POST api.cdp.coinbase.com/platform/v2/evm/accounts/{account_address}/send/transaction"
        ]

    @respx.mock
    def test_send_usdc_decimal(self, client_kwargs, host, account_address, recipient):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            return_value=Response(200, json={"transactionHash": "0x01"})
        )
        result = run(client_kwargs, lambda c: c.send_usdc(recipient, Decimal("25.5")))
        assert result.success
        body = json.loads(route.calls.last.request.content)
        assert _calldata_amount(body["transaction"]) == 25_500_000

    @respx.mock
    def test_custom_token(self, client_kwargs, host, account_address, recipient):
        token = "0x" + "33" * 20
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            return_value=Response(200, json={"transactionHash": "0x01"})
        )
        result = run(
            client_kwargs,
            lambda c: c.send_stablecoin(recipient, "1", token_address=token, decimals=18),
        )
        assert result.success
        tx = json.loads(route.calls.last.request.content)["transaction"]
        assert ("33" * 20) in tx
        assert _calldata_amount(tx) == 10**18

    @respx.mock
    def test_http_422_is_returned(self, client_kwargs, host, account_address, recipient):
        respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            return_value=Response(422, json={"message": "insufficient funds"})
        )

        result = run(client_kwargs, lambda c: c.send_stablecoin(recipient, 1))

        assert result.success is False
        assert result.tx_hash is None
        assert "422" in result.error
        assert "insufficient funds" in result.error

    @respx.mock
    def test_missing_hash(self, client_kwargs, host, account_address, recipient):
        respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            return_value=Response(200, json={})
        )
        result = run(client_kwargs, lambda c: c.send_stablecoin(recipient, 1))
        assert result.success is False
        assert "transactionHash" in result.error

    @respx.mock
    def test_network_error(self, client_kwargs, host, account_address, recipient):
        respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        result = run(client_kwargs, lambda c: c.send_stablecoin(recipient, 1))
        assert result.success is False
        assert "connection refused" in result.error

    @respx.mock(assert_all_called=False)
    def test_invalid_recipient_sends_nothing(self, client_kwargs, host, account_address):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction")
        result = run(client_kwargs, lambda c: c.send_stablecoin("0xnope", 1))
        assert result.success is False
        assert not route.called

    @respx.mock(assert_all_called=False)
    def test_negative_amount_sends_nothing(self, client_kwargs, host, account_address, recipient):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction")
        result = run(client_kwargs, lambda c: c.send_stablecoin(recipient, -5))
        assert result.success is False
        assert "non-negative" in result.error
        assert not route.called

    @respx.mock(assert_all_called=False)
    def test_amount_too_large_sends_nothing(self, client_kwargs, host, account_address, recipient):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction")
        result = run(client_kwargs, lambda c: c.send_stablecoin(recipient, Decimal("1e100")))
        assert result.success is False
        assert "too large" in result.error
        assert not route.called

    @respx.mock
    def test_no_retry(self, client_kwargs, host, account_address, recipient):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/send/transaction").mock(
            return_value=Response(503, text="unavailable")
        )
        run(client_kwargs, lambda c: c.send_stablecoin(recipient, 1))
        assert route.call_count == 1


class TestCreateAccount:
    """Tests for create_account."""

    @respx.mock
    def test_create(self, client_kwargs, host):
        new_address = "0x" + "44" * 20
        route = respx.post(f"{host}/v2/evm/accounts").mock(
            return_value=Response(201, json={"address": new_address})
        )

        assert run(client_kwargs, lambda c: c.create_account()) == new_address

        request = route.calls.last.request
        assert json.loads(request.content) == {}
        wallet_claims = _claims(request.headers["X-Wallet-Auth"])
        assert "reqHash" not in wallet_claims

    @respx.mock
    def test_failure(self, client_kwargs, host):
        respx.post(f"{host}/v2/evm/accounts").mock(return_value=Response(401, text="unauthorized"))
        assert run(client_kwargs, lambda c: c.create_account()) is None


class TestSwaps:
    """Tests for swap price, quote and execution."""

    @respx.mock
    def test_swap_price(self, client_kwargs, host):
        route = respx.get(f"{host}/v2/evm/swap/price").mock(
            return_value=Response(200, json={
                "buyAmount": "400000000000000",
                "sellAmount": "1000000",
                "price": "0.0004",
                "buyTokenAddress": "0xbuy",
                "sellTokenAddress": "0xsell",
                "estimatedGas": 150000,
            })
        )

        price = run(client_kwargs, lambda c: c.get_swap_price("0xsell", "0xbuy", "1000000"))

        assert price.buy_amount == "400000000000000"
        assert price.price == "0.0004"
        assert price.estimated_gas == "150000"

        request = route.calls.last.request
        assert request.url.params["sellToken"] == "0xsell"
        assert request.url.params["network"] == "base"
        assert "X-Wallet-Auth" not in request.headers
        claims = _claims(request.headers["Authorization"][len("Bearer "):])
        assert claims["uris"] == ["GET api.cdp.coinbase.com/platform/v2/evm/swap/price"]

    @respx.mock
    def test_swap_price_defaults(self, client_kwargs, host):
        respx.get(f"{host}/v2/evm/swap/price").mock(return_value=Response(200, json={}))
        price = run(client_kwargs, lambda c: c.get_swap_price("0xsell", "0xbuy", "5"))
        assert price.buy_amount == "0"
        assert price.sell_amount == "5"
        assert price.buy_token == "0xbuy"
        assert price.estimated_gas is None

    @respx.mock
    def test_swap_price_failure(self, client_kwargs, host):
        respx.get(f"{host}/v2/evm/swap/price").mock(return_value=Response(400, text="bad"))
        assert run(client_kwargs, lambda c: c.get_swap_price("0xsell", "0xbuy", "5")) is None

    @respx.mock
    def test_swap_quote(self, client_kwargs, host, account_address):
        route = respx.post(f"{host}/v2/evm/swap/quote").mock(
            return_value=Response(200, json={
                "buyAmount": "10",
                "sellAmount": "20",
                "price": "0.5",
                "allowanceTarget": "0xallow",
                "transaction": {"to": "0xrouter", "data": "0xdead", "value": "0", "gas": "210000"},
            })
        )

        quote = run(
            client_kwargs, lambda c: c.get_swap_quote("0xsell", "0xbuy", "20", slippage_bps=50)
        )

        assert quote.allowance_target == "0xallow"
        assert quote.transaction == SwapTransaction(
            to="0xrouter", data="0xdead", value="0", gas="210000"
        )
        request = route.calls.last.request
        body = json.loads(request.content)
        assert body["slippagePercentage"] == "0.005"
        assert body["takerAddress"] == account_address
        assert "X-Wallet-Auth" not in request.headers

    @respx.mock
    def test_swap_quote_malformed_transaction(self, client_kwargs, host):
        respx.post(f"{host}/v2/evm/swap/quote").mock(
            return_value=Response(200, json={"buyAmount": "10", "transaction": "0xdead"})
        )
        assert run(client_kwargs, lambda c: c.get_swap_quote("0xsell", "0xbuy", "20")) is None

    @respx.mock
    def test_swap_quote_without_transaction(self, client_kwargs, host):
        respx.post(f"{host}/v2/evm/swap/quote").mock(
            return_value=Response(200, json={"buyAmount": "10"})
        )
        quote = run(client_kwargs, lambda c: c.get_swap_quote("0xsell", "0xbuy", "20"))
        assert quote.buy_amount == "10"
        assert quote.transaction is None

    @respx.mock
    def test_execute_swap(self, client_kwargs, host, account_address):
        route = respx.post(f"{host}/v2/evm/accounts/{account_address}/swap").mock(
            return_value=Response(200, json={
                "transactionHash": "0xswap",
                "buyAmount": "10",
                "sellAmount": "20",
            })
        )

        result = run(client_kwargs, lambda c: c.execute_swap("0xsell", "0xbuy", "20"))

        assert result.success is True
        assert result.tx_hash == "0xswap"
        assert result.buy_amount == "10"
        assert result.sell_amount == "20"
        request = route.calls.last.request
        body = json.loads(request.content)
        assert body["slippagePercentage"] == "0.01"
        assert _claims(request.headers["X-Wallet-Auth"])["reqHash"] == request_hash(body)

    @respx.mock
    def test_execute_swap_failure(self, client_kwargs, host, account_address):
        respx.post(f"{host}/v2/evm/accounts/{account_address}/swap").mock(
            return_value=Response(400, json={"message": "slippage too low"})
        )
        result = run(client_kwargs, lambda c: c.execute_swap("0xsell", "0xbuy", "20"))
        assert result.success is False
        assert "slippage too low" in result.error


class TestConcurrency:
    """Concurrent calls share the parsed key but not tokens."""

    @respx.mock
    def test_parallel_calls_get_distinct_tokens(self, client_kwargs, host, account_address):
        route = respx.get(f"{host}/v2/evm/token-balances/base/{account_address}").mock(
            return_value=Response(200, json={"balances": []})
        )

        async def scenario(client):
            return await asyncio.gather(*(client.get_balance() for _ in range(5)))

        assert run(client_kwargs, scenario) == [[]] * 5
        tokens = {call.request.headers["Authorization"] for call in route.calls}
        assert len(tokens) == 5
