import asyncio

import httpx
import pytest

import check_payment_status


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def fetch(txnid, handler):
    async def call():
        async with mock_client(handler) as client:
            return await check_payment_status.fetch_payment_status(
                txnid, base_url="http://api.test/", client=client
            )

    return asyncio.run(call())


def test_fetch_returns_payload():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(
            200,
            json={
                "success": True,
                "paymentStatus": "Paid",
                "status": "Approved",
                "donation": {"paymentDetails": {"bank_ref_num": "BR-1"}},
            },
        )

    data = fetch("TXN1", handler)

    assert seen == ["http://api.test/api/payment/status/TXN1"]
    assert data["paymentStatus"] == "Paid"
    assert check_payment_status.format_status("TXN1", data) == (
        "TXN1: paymentStatus=Paid status=Approved bank_ref_num=BR-1"
    )


def test_fetch_unknown_transaction():
    data = fetch("TXN404", lambda request: httpx.Response(404, json={"error": "Transaction not found"}))
    assert data is None
    assert check_payment_status.format_status("TXN404", data) == "TXN404: not found"


def test_fetch_server_error_raises():
    with pytest.raises(httpx.HTTPStatusError):
        fetch("TXN500", lambda request: httpx.Response(500, json={"error": "boom"}))


def test_format_failure_reason():
    data = {
        "paymentStatus": "Failed",
        "status": "Rejected",
        "donation": {"failureReason": "Insufficient funds", "paymentDetails": {}},
    }
    assert check_payment_status.format_status("TXN2", data) == (
        "TXN2: paymentStatus=Failed status=Rejected reason='Insufficient funds'"
    )
