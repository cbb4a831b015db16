"""
Pay out USDC to a list of recipients.

A failed payout does not stop the loop: send_usdc() returns a result
instead of raising. Failed items are reported at the end for a manual retry,
since resubmitting automatically could pay someone twice.

Usage:
    python examples/send_payout.py 0xRecipient:1.50 0xOther:0.25
"""

import asyncio
import logging
import sys
from decimal import Decimal

from cdp_client import CdpClient

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


async def main(payouts) -> None:
    failed = []
    async with CdpClient.from_env() as client:
        for recipient, amount in payouts:
            result = await client.send_usdc(recipient, amount)
            if result.success:
                print(f"  paid {amount} USDC to {recipient}: {result.tx_hash}")
            else:
                print(f"  FAILED {amount} USDC to {recipient}: {result.error}")
                failed.append((recipient, amount))

    if failed:
        print(f"\n{len(failed)} payout(s) failed:")
        for recipient, amount in failed:
            print(f"  {recipient} {amount}")


def parse_args(args):
    payouts = []
    for arg in args:
        recipient, _, amount = arg.partition(":")
        payouts.append((recipient, Decimal(amount)))
    return payouts


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(parse_args(sys.argv[1:])))
