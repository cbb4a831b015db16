"""
Constants for the CDP Python client.
"""

# API host
CDP_BASE = "https://api.cdp.coinbase.com/platform"

# Chain IDs
BASE_MAINNET = 8453
BASE_SEPOLIA = 84532

DEFAULT_NETWORK = "base"

# API endpoints, relative to CDP_BASE
ENDPOINTS = {
    "accounts": "/v2/evm/accounts",
    "send_transaction": "/v2/evm/accounts/{address}/send/transaction",
    "token_balances": "/v2/evm/token-balances/{network}/{address}",
    "swap_price": "/v2/evm/swap/price",
    "swap_quote": "/v2/evm/swap/quote",
    "account_swap": "/v2/evm/accounts/{address}/swap",
}

# Path segments whose mutating calls need an X-Wallet-Auth header
WALLET_AUTH_SEGMENTS = ("/accounts", "/spend-permissions")
WALLET_AUTH_METHODS = ("POST", "PUT", "DELETE")

# JWT
JWT_ISSUER = "cdp"
JWT_AUDIENCE = ["cdp_service"]
JWT_LIFETIME_SECONDS = 120
JWT_NONCE_BYTES = 16

# Well-known token addresses on Base mainnet
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
WETH_BASE = "0x4200000000000000000000000000000000000006"
ETH_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
DEGEN_BASE = "0x4ed4E862860beD51a9570b96d89aF5E1B0Efefed"

# USDC on Base Sepolia
USDC_BASE_SEPOLIA = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"

USDC_DECIMALS = 6

# ERC-20 transfer(address,uint256)
ERC20_TRANSFER_SELECTOR = "a9059cbb"

# EIP-2718 type byte for EIP-1559 transactions
EIP1559_TX_TYPE = 0x02

DEFAULT_SLIPPAGE_BPS = 100
