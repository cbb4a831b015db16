"""
Check the platform wallet's balances using CDP_* credentials from the environment.

Shows how to:
- Create a client from environment variables (or a .env file)
- List token balances in human units
- Get an indicative swap price
"""

import asyncio

from cdp_client import CdpClient, from_atomic_amount, resolve_token, to_atomic_amount


async def main() -> None:
    async with CdpClient.from_env() as client:
        print(f"Account: {client.address} on {client.network} (key: {client.algorithm.value})")

        # --- Balances ---
        balances = await client.get_balance()
        if not balances:
            print("No tokens found.")
        for b in balances:
            print(f"  {b.symbol:>8}  {from_atomic_amount(b.amount, b.decimals)}")

        # --- Price for 10 USDC -> ETH ---
        usdc = resolve_token("usdc", network=client.network)
        eth = resolve_token("eth")
        sell_amount = str(to_atomic_amount("10", usdc.decimals))
        price = await client.get_swap_price(usdc.address, eth.address, sell_amount)
        if price is None:
            print("\nPrice lookup failed.")
        else:
            print(f"\n10 USDC -> {from_atomic_amount(price.buy_amount, eth.decimals)} ETH")


if __name__ == "__main__":
    asyncio.run(main())
