"""Look up a PayU transaction through the running API.

Run: python check_payment_status.py TXN1729330000000123456
"""

import asyncio
import os
import sys
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

API_BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")


async def fetch_payment_status(
    txnid: str,
    base_url: str = API_BASE,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[Dict[str, Any]]:
    """Return the status payload for ``txnid`` or None when it is unknown."""
    url = f"{base_url.rstrip('/')}/api/payment/status/{txnid}"
    if client is None:
        async with httpx.AsyncClient(timeout=15.0) as own_client:
            response = await own_client.get(url)
    else:
        response = await client.get(url)

    if response.status_code == 404:
        return None
    response.raise_for_status()
    return response.json()


def format_status(txnid: str, data: Optional[Dict[str, Any]]) -> str:
    if data is None:
        return f"{txnid}: not found"
    donation = data.get("donation") or {}
    details = donation.get("paymentDetails") or {}
    line = f"{txnid}: paymentStatus={data.get('paymentStatus')} status={data.get('status')}"
    if details.get("bank_ref_num"):
        line += f" bank_ref_num={details['bank_ref_num']}"
    if donation.get("failureReason"):
        line += f" reason={donation['failureReason']!r}"
    return line


async def main(argv) -> int:
    if len(argv) < 2:
        print("usage: check_payment_status.py TXNID [TXNID ...]")
        return 2
    for txnid in argv[1:]:
        try:
            data = await fetch_payment_status(txnid)
        except httpx.HTTPError as e:
            print(f"{txnid}: request failed ({e})")
            continue
        print(format_status(txnid, data))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))
