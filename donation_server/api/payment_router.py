# donation_server/api/payment_router.py

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_303_SEE_OTHER

from donation_server.config import PayUConfig
from donation_server.db.session import SessionLocal
from donation_server.services import donation_service
from donation_server.services.callback_fields import GatewayCallback
from donation_server.services.payu_client import PayUClient
from donation_server.services.reconciliation import Outcome, ReconciliationEngine

router = APIRouter(prefix="/payment")


async def get_db():
    async with SessionLocal() as db:
        yield db


def get_payu_config() -> PayUConfig:
    try:
        return PayUConfig.from_env()
    except RuntimeError as e:
        logging.error("%s", e)
        raise HTTPException(status_code=500, detail=str(e))


def get_redirect_config() -> Optional[PayUConfig]:
    """Browser callbacks always end on the frontend, so a broken config is None here."""
    try:
        return PayUConfig.from_env()
    except RuntimeError as e:
        logging.error("%s", e)
        return None


def _config_error_redirect() -> RedirectResponse:
    url = os.getenv("FRONTEND_FAILURE_URL") or PayUConfig.model_fields["frontend_failure_url"].default
    return _redirect(url, error="processing_error")


async def _read_payload(request: Request) -> Dict[str, Any]:
    """PayU posts form data; JSON is accepted for manual replays."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.json()
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return dict(form)


def _redirect(url: str, **params) -> RedirectResponse:
    # Browser callbacks arrive as POST; 303 makes the frontend load with GET
    query = urlencode({k: "" if v is None else v for k, v in params.items()}, quote_via=quote)
    separator = "&" if "?" in url else "?"
    return RedirectResponse(url=f"{url}{separator}{query}", status_code=HTTP_303_SEE_OTHER)


# ---------- INITIATE ----------
@router.post("/initiate")
async def initiate_payment(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: PayUConfig = Depends(get_payu_config),
):
    """
    Creates a Pending donation and returns the signed PayU form.
    Body:
    {
      "amount": 500, "baseAmount": 450, "extraAmount": 50,
      "firstname": "Asha", "email": "a@x.com", "phone": "9876543210",
      "productinfo": "Donation", "category": "<category id>",
      "item": "...", "quantity": 1, "userId": "<optional user id>"
    }
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Request body must be JSON"})
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

    try:
        result = await PayUClient(config).initiate(db, body)
    except Exception as e:
        logging.exception("Payment initiation failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to initiate payment", "details": str(e)},
        )

    if not result.ok:
        return JSONResponse(status_code=400, content={"error": result.error})

    return {
        "success": True,
        "paymentData": result.payment_data,
        "payuUrl": result.payu_url,
        "donationId": result.donation_id,
        "message": "Payment initiated successfully",
    }


# ---------- BROWSER REDIRECTS ----------
@router.post("/success")
async def payment_success(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: Optional[PayUConfig] = Depends(get_redirect_config),
):
    if config is None:
        return _config_error_redirect()
    try:
        callback = GatewayCallback.from_payload(await _read_payload(request))
        logging.info(
            "PayU success callback: txnid=%s status=%s udf4=%s",
            callback.txnid,
            callback.status,
            callback.udf4,
        )
        result = await ReconciliationEngine(config, db).confirm_success(callback)
    except Exception:
        logging.exception("Payment success handler error")
        return _redirect(config.frontend_failure_url, error="processing_error")

    if result.outcome is Outcome.INVALID_HASH:
        return _redirect(config.frontend_failure_url, error="invalid_hash")

    return _redirect(
        config.frontend_success_url,
        txnid=callback.txnid,
        amount=callback.amount,
        status=callback.status,
    )


@router.post("/failure")
async def payment_failure(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: Optional[PayUConfig] = Depends(get_redirect_config),
):
    if config is None:
        return _config_error_redirect()
    try:
        callback = GatewayCallback.from_payload(await _read_payload(request))
        logging.info(
            "PayU failure callback: txnid=%s status=%s udf4=%s",
            callback.txnid,
            callback.status,
            callback.udf4,
        )
        result = await ReconciliationEngine(config, db).record_failure(callback)
    except Exception:
        logging.exception("Payment failure handler error")
        return _redirect(config.frontend_failure_url, error="processing_error")

    if result.outcome is Outcome.INVALID_HASH:
        return _redirect(config.frontend_failure_url, error="invalid_hash")

    return _redirect(
        config.frontend_failure_url,
        txnid=callback.txnid or "N/A",
        error=result.error_message,
    )


@router.post("/cancel")
async def payment_cancel(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: Optional[PayUConfig] = Depends(get_redirect_config),
):
    if config is None:
        return _config_error_redirect()
    try:
        callback = GatewayCallback.from_payload(await _read_payload(request))
        logging.info("PayU cancel callback: txnid=%s udf4=%s", callback.txnid, callback.udf4)
        result = await ReconciliationEngine(config, db).record_cancel(callback)
    except Exception:
        logging.exception("Payment cancel handler error")
        return _redirect(config.frontend_failure_url, error="processing_error")

    if result.outcome is Outcome.INVALID_HASH:
        return _redirect(config.frontend_failure_url, error="invalid_hash")

    return _redirect(
        config.frontend_failure_url,
        txnid=callback.txnid or "N/A",
        error=result.error_message,
        status="cancelled",
    )


# ---------- SERVER-TO-SERVER WEBHOOK ----------
@router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: PayUConfig = Depends(get_payu_config),
):
    """PayU retries on anything but 200, so only definitive answers are non-200."""
    try:
        callback = GatewayCallback.from_payload(await _read_payload(request))
        logging.info(
            "PayU webhook: txnid=%s status=%s udf4=%s",
            callback.txnid,
            callback.status,
            callback.udf4,
        )
        result = await ReconciliationEngine(config, db).apply_webhook(callback)
    except Exception as e:
        logging.exception("Webhook processing error")
        return JSONResponse(
            status_code=500,
            content={"error": "Webhook processing failed", "details": str(e)},
        )

    if result.outcome is Outcome.INVALID_HASH:
        return JSONResponse(status_code=400, content={"error": "Invalid hash"})
    if result.outcome is Outcome.MISSING_ID:
        return JSONResponse(status_code=400, content={"error": "Donation ID missing"})
    if result.outcome is Outcome.NOT_FOUND:
        return JSONResponse(status_code=404, content={"error": "Donation not found"})

    message = "Webhook processed successfully"
    if result.outcome is Outcome.ALREADY_FINAL:
        message = "Donation already finalized"
    return {
        "success": True,
        "message": message,
        "donationId": result.donation_id,
        "paymentStatus": result.payment_status,
    }


# ---------- STATUS ----------
@router.get("/status/{txnid}")
async def payment_status(txnid: str, db: AsyncSession = Depends(get_db)):
    try:
        donation = await donation_service.get_donation_by_transaction_id(db, txnid)
    except Exception as e:
        logging.exception("Payment status check failed for txnid=%s", txnid)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to check payment status", "details": str(e)},
        )

    if donation is None:
        return JSONResponse(status_code=404, content={"error": "Transaction not found"})

    return {
        "success": True,
        "donation": donation_service.donation_to_dict(donation),
        "paymentStatus": donation.payment_status,
        "status": donation.status,
    }
