"""
Swap tokens from the platform wallet.

Usage:
    python examples/swap_tokens.py 10 usdc eth [slippage_bps]
"""

import asyncio
import sys

from cdp_client import CdpClient, from_atomic_amount, resolve_token, to_atomic_amount


async def main(amount: str, sell: str, buy: str, slippage_bps: int) -> None:
    async with CdpClient.from_env() as client:
        sell_token = resolve_token(sell, network=client.network)
        buy_token = resolve_token(buy, network=client.network)
        if sell_token is None or buy_token is None:
            print(f"Unknown token: {sell if sell_token is None else buy}")
            return

        sell_amount = str(to_atomic_amount(amount, sell_token.decimals))

        # Firm quote first so the user sees what they will get
        quote = await client.get_swap_quote(
            sell_token.address, buy_token.address, sell_amount, slippage_bps
        )
        if quote is None:
            print("Quote failed.")
            return
        print(
            f"Quote: {amount} {sell_token.symbol} -> "
            f"{from_atomic_amount(quote.buy_amount, buy_token.decimals)} {buy_token.symbol}"
        )

        result = await client.execute_swap(
            sell_token.address, buy_token.address, sell_amount, slippage_bps
        )
        if result.success:
            print(f"Swap submitted: {result.tx_hash}")
        else:
            print(f"Swap failed: {result.error}")


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print(__doc__)
        sys.exit(1)
    bps = int(sys.argv[4]) if len(sys.argv) > 4 else 100
    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3], bps))
